"""Transforms every archive of an input folder in parallel."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from logtrim.logging import logger
from logtrim.transform.archive_transformer import TransformOutcome, TransformResult
from logtrim.transform.progress import ProgressTracker, format_count

if TYPE_CHECKING:
    from collections.abc import Callable, Collection
    from datetime import timedelta

    from logtrim.transform.archive_transformer import ArchiveTransformer
    from logtrim.transform.transform_storage import TransformStorage


class TransformError(Exception):
    """Base exception for errors while transforming a batch of archives."""


class InputFolderNotFoundError(TransformError):
    """Exception raised when the input folder does not exist."""


class OutputNameCollisionError(TransformError):
    """Exception raised when two archives would write to the same output files."""


@dataclass(frozen=True)
class BatchSummary:
    """Represents the outcome of a whole batch."""

    results: list[TransformResult] = field(default_factory=list)
    processed: int = 0
    errors: int = 0
    ignored: int = 0
    duration: timedelta | None = None

    @property
    def successful(self) -> bool:
        """
        Check if every archive in the batch was transformed.

        :return: True if no archive failed, False otherwise.
        """
        return self.errors == 0


class BatchTransformer:
    """Runs the archive transformer for every archive that hasn't been processed yet."""

    def __init__(
        self,
        storage: TransformStorage,
        archive_transformer: ArchiveTransformer,
        max_workers: int | None = None,
        progress_factory: Callable[[int], ProgressTracker] = ProgressTracker,
    ) -> None:
        """
        Initialize the BatchTransformer.

        :param storage: The storage holding the input archives and their outputs.
        :param archive_transformer: The transformer applied to each archive.
        :param max_workers: The number of worker threads, or None for the executor default.
        :param progress_factory: Builds the progress tracker for a batch of the given size.
        """
        self.storage = storage
        self.archive_transformer = archive_transformer
        self.max_workers = max_workers
        self.progress_factory = progress_factory

    def transform_all(self) -> BatchSummary:
        """
        Transform every archive in the input folder that has no output yet.

        A failing archive never stops the others; it is counted as an error.
        An archive whose output files would clash with those of an earlier archive
        is not transformed and is counted as an error too.

        :raises InputFolderNotFoundError: If the input folder does not exist.
        :return: The summary of the batch.
        """
        if not self.storage.input_folder_exists():
            msg = f"The folder '{self.storage.input_folder}' does not exist."
            raise InputFolderNotFoundError(msg)

        pending, skipped, colliding = self._filter_archives_needing_transform()
        ignored = len(skipped)
        skipped_results = [
            TransformResult(name, TransformOutcome.ALREADY_PROCESSED) for name in skipped
        ]
        collision_results = [self._collision_result(name, other) for name, other in colliding]

        addendum = "" if ignored == 0 else f" ({ignored:,} ignored)"
        if not pending:
            logger.info(f"No files to process{addendum}.")
            return BatchSummary(
                results=collision_results + skipped_results,
                errors=len(collision_results),
                ignored=ignored,
            )

        logger.info(f"Found {format_count(len(pending), 'file', 'files')} to process{addendum}.")
        self.storage.ensure_output_folder()

        progress = self.progress_factory(len(pending))
        results = self._run_in_parallel(pending, progress)
        logger.info(progress.completion_message())

        failures = [result for result in results + collision_results if not result.successful]
        if failures:
            logger.error(
                f"{len(failures)}/{len(results) + len(collision_results)} archives failed: "
                f"{[result.archive_name for result in failures]}",
            )

        return BatchSummary(
            results=results + collision_results + skipped_results,
            processed=progress.processed,
            errors=progress.errors + len(collision_results),
            ignored=ignored,
            duration=progress.elapsed(),
        )

    def _filter_archives_needing_transform(
        self,
    ) -> tuple[list[str], list[str], list[tuple[str, str]]]:
        archives = self.storage.list_input_archives()
        already_processed = {name.lower() for name in self.storage.list_existing_outputs()}

        pending: list[str] = []
        skipped: list[str] = []
        colliding: list[tuple[str, str]] = []
        claimed: dict[str, str] = {}
        for name in archives:
            if self.storage.output_name(name).lower() in already_processed:
                skipped.append(name)
                continue

            written = self.storage.written_names(name)
            owner = next((claimed[key] for key in sorted(written) if key in claimed), None)
            if owner is not None:
                colliding.append((name, owner))
                continue

            claimed.update(dict.fromkeys(written, name))
            pending.append(name)
        return pending, skipped, colliding

    def _collision_result(self, archive_name: str, owner: str) -> TransformResult:
        msg = (
            f"Archive {archive_name} would overwrite the output of {owner} in "
            f"{self.storage.output_folder}, it was not transformed."
        )
        logger.error(msg)
        return TransformResult(
            archive_name,
            TransformOutcome.ERROR,
            error=OutputNameCollisionError(msg),
        )

    def _run_in_parallel(
        self,
        archive_names: Collection[str],
        progress: ProgressTracker,
    ) -> list[TransformResult]:
        def _transform_archive(archive_name: str) -> TransformResult:
            logger.info(progress.start(archive_name))
            result = self.archive_transformer.transform(archive_name)
            if result.outcome is TransformOutcome.ERROR:
                progress.record_error()
            else:
                progress.record_processed()
            return result

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(_transform_archive, archive_names))

