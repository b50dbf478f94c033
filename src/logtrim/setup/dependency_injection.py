"""A module for setting up logtrim using Dependency Injection."""

from __future__ import annotations

import fsspec
from dependency_injector import containers, providers

from logtrim.logging import logger
from logtrim.transform.archive_transformer import ArchiveTransformer
from logtrim.transform.batch_transformer import BatchTransformer
from logtrim.transform.progress import ProgressTracker
from logtrim.transform.transform_storage import OutputMode, TransformStorage


def _optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    number = int(value)
    if number < 1:
        msg = f"Expected a positive number of workers, but found {number}."
        raise ValueError(msg)
    return number


def _output_mode(value: str) -> OutputMode:
    return OutputMode(value.strip().lower())


class LogtrimContainer(containers.DeclarativeContainer):
    """
    Dependency Injection container for logtrim.

    This container manages the configuration and resources required for a transformation run.
    """

    config = providers.Configuration(strict=True)

    filesystem = providers.Singleton(
        fsspec.filesystem,
        config.filesystem_protocol,
    )

    storage = providers.Singleton(
        TransformStorage,
        filesystem=filesystem,
        input_folder=config.input_folder,
        output_folder=config.output_folder,
        output_mode=config.output_mode,
    )

    archive_transformer = providers.Singleton(
        ArchiveTransformer,
        storage=storage,
    )

    progress_tracker = providers.Factory(
        ProgressTracker,
    )

    batch_transformer = providers.Singleton(
        BatchTransformer,
        storage=storage,
        archive_transformer=archive_transformer,
        max_workers=config.max_workers,
        progress_factory=progress_tracker.provider,
    )


def init_dependencies_from_env() -> LogtrimContainer:
    """
    Create a container instance with configuration loaded from environment variables.

    Returns:
        Container: An instance of the Container class with configuration set.

    """
    container = LogtrimContainer()

    container.config.input_folder.from_env("INPUT_FOLDER")
    container.config.output_folder.from_env("OUTPUT_FOLDER")

    container.config.output_mode.from_env("OUTPUT_MODE", default="zip", as_=_output_mode)
    container.config.filesystem_protocol.from_env("FILESYSTEM_PROTOCOL", default="file")
    container.config.max_workers.from_env("MAX_WORKERS", default=None, as_=_optional_int)

    logger.debug(
        f"Configured input folder {container.config.input_folder()} and output folder "
        f"{container.config.output_folder()} ({container.config.output_mode().value} output)",
    )

    return container
