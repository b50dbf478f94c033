"""Transforms a single archive into its latest-day log artifact."""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from logtrim.archives.log_archive import open_log_archive
from logtrim.assembly.stream_assembler import (
    AssemblyResult,
    assemble,
    open_flat_sink,
    open_zip_entry_sink,
)
from logtrim.logging import logger
from logtrim.selection.entry_selector import select_latest_day_entries
from logtrim.transform.transform_storage import OutputMode

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from typing import IO

    from logtrim.transform.transform_storage import TransformStorage


class TransformOutcome(Enum):
    """Enum representing the outcome of transforming one archive."""

    COMPLETE = ("complete", True)
    """
    The latest day's log was written to the output artifact.
    """
    ALREADY_PROCESSED = ("already_processed", True)
    """
    The output artifact already existed, the archive was skipped for this run.
    """
    ERROR = ("error", False)
    """
    The archive could not be transformed; an error report was written instead.
    """

    def __init__(self, type_name: str, successful: bool) -> None:  # noqa: FBT001
        """
        Initialize the TransformOutcome with a name and successful flag.

        :param type_name: The name of the outcome.
        :param successful: Whether the outcome counts as a success.
        """
        self.type_name = type_name
        self.successful = successful


@dataclass(frozen=True)
class TransformResult:
    """Represents the result of transforming one archive."""

    archive_name: str
    outcome: TransformOutcome
    assembly: AssemblyResult | None = None
    error: Exception | None = None

    @property
    def successful(self) -> bool:
        """
        Check if the transformation was successful.

        :return: True if the outcome is a successful one, False otherwise.
        """
        return self.outcome.successful


class ArchiveTransformer:
    """Reduces an archive to the entries of its latest day, concatenated."""

    def __init__(self, storage: TransformStorage) -> None:
        """
        Initialize the ArchiveTransformer.

        :param storage: The storage holding the input archives and their outputs.
        """
        self.storage = storage

    def transform(self, archive_name: str) -> TransformResult:
        """
        Transform one input archive, recording any failure instead of raising it.

        On failure the partial output is removed and an error report is written
        next to where the output would have been.

        :param archive_name: The filename of the archive inside the input folder.
        :return: The result of the transformation.
        """
        try:
            assembly = self._transform_or_raise(archive_name)
        except Exception as e:  # noqa: BLE001
            details = traceback.format_exc()
            logger.error(
                f"Failed to transform archive {archive_name}",
                exc_info=True,
            )
            self.storage.remove_output(archive_name)
            self._write_error_report(archive_name, e, details)
            return TransformResult(archive_name, TransformOutcome.ERROR, error=e)
        else:
            return TransformResult(archive_name, TransformOutcome.COMPLETE, assembly=assembly)

    def _write_error_report(self, archive_name: str, error: Exception, details: str) -> None:
        try:
            report_path = self.storage.write_error_report(archive_name, error, details)
        except OSError:
            logger.warning(
                f"Failed to write the error report for archive {archive_name}",
                exc_info=True,
            )
        else:
            logger.debug(f"Wrote error report {report_path}")

    def _transform_or_raise(self, archive_name: str) -> AssemblyResult:
        input_path = self.storage.input_path(archive_name)
        output_path = self.storage.output_path(archive_name)

        with open_log_archive(self.storage.filesystem, input_path) as archive:
            selected = select_latest_day_entries(archive.entries())
            logger.debug(
                f"Selected {len(selected)} entries from {archive_name}: "
                f"{[entry.name for entry in selected]}",
            )

            with self._open_sink(output_path) as sink:
                assembly = assemble(archive, selected, sink)

        logger.debug(
            f"Wrote {assembly.bytes_written} bytes from {assembly.entries_copied} "
            f"entries to {output_path}",
        )
        return assembly

    def _open_sink(self, output_path: str) -> AbstractContextManager[IO[bytes]]:
        if self.storage.output_mode is OutputMode.ZIP:
            return open_zip_entry_sink(self.storage.filesystem, output_path)
        return open_flat_sink(self.storage.filesystem, output_path)
