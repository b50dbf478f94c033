"""Handles the input and output folders of the transformation."""

from __future__ import annotations

import posixpath
from enum import Enum
from typing import TYPE_CHECKING

from logtrim.logging import logger

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem

ERROR_REPORT_SUFFIX = ".error"


class OutputMode(Enum):
    """The kind of artifact written for each input archive."""

    ZIP = "zip"
    """
    A new zip archive with the input archive's filename holding a single combined entry.
    """
    FLAT = "flat"
    """
    A plain `<archive stem>.log` file.
    """


def archive_stem(archive_name: str) -> str:
    """Return the archive filename without its final extension."""
    stem, _ = posixpath.splitext(archive_name)
    return stem


class TransformStorage:
    """Handles the storage operations for the input archives and their outputs."""

    def __init__(
        self,
        filesystem: AbstractFileSystem,
        input_folder: str,
        output_folder: str,
        output_mode: OutputMode = OutputMode.ZIP,
    ) -> None:
        """
        Initialize the TransformStorage with the filesystem and folder paths.

        :param filesystem: The filesystem to use for reading and writing files.
        :param input_folder: The folder holding the archives to transform.
        :param output_folder: The folder where the reduced artifacts will be written.
        :param output_mode: The kind of artifact to write for each archive.
        """
        self.filesystem = filesystem
        self.input_folder = input_folder.rstrip("/")
        self.output_folder = output_folder.rstrip("/")
        self.output_mode = output_mode

    def input_folder_exists(self) -> bool:
        """Check whether the input folder exists and is a directory."""
        return self.filesystem.isdir(self.input_folder)

    def list_input_archives(self) -> list[str]:
        """
        List the filenames of every file directly inside the input folder.

        :return: The sorted archive filenames.
        """
        return self._list_filenames(self.input_folder)

    def list_existing_outputs(self) -> list[str]:
        """
        List the filenames of the output artifacts already present.

        :return: The output filenames matching the configured output mode, or an
        empty list when the output folder doesn't exist yet.
        """
        if not self.filesystem.isdir(self.output_folder):
            return []

        suffix = ".zip" if self.output_mode is OutputMode.ZIP else ".log"
        return [
            name
            for name in self._list_filenames(self.output_folder)
            if name.lower().endswith(suffix)
        ]

    def ensure_output_folder(self) -> None:
        """Create the output folder if it does not exist."""
        if not self.filesystem.isdir(self.output_folder):
            logger.info(f"Creating output folder {self.output_folder}")
            self.filesystem.makedirs(self.output_folder, exist_ok=True)

    def input_path(self, archive_name: str) -> str:
        """Return the full path of an input archive."""
        return f"{self.input_folder}/{archive_name}"

    def output_name(self, archive_name: str) -> str:
        """Return the filename of the artifact written for an input archive."""
        if self.output_mode is OutputMode.ZIP:
            return archive_name
        return f"{archive_stem(archive_name)}.log"

    def output_path(self, archive_name: str) -> str:
        """Return the full path of the artifact written for an input archive."""
        return f"{self.output_folder}/{self.output_name(archive_name)}"

    def error_report_path(self, archive_name: str) -> str:
        """Return the full path of the error report for an input archive."""
        return f"{self.output_folder}/{archive_stem(archive_name)}{ERROR_REPORT_SUFFIX}"

    def written_names(self, archive_name: str) -> set[str]:
        """
        Return the lower-cased filenames an archive may write into the output folder.

        Two archives sharing any of these names would overwrite each other.
        """
        return {
            self.output_name(archive_name).lower(),
            f"{archive_stem(archive_name)}{ERROR_REPORT_SUFFIX}".lower(),
        }

    def remove_output(self, archive_name: str) -> None:
        """
        Delete the output artifact of an archive if one was (partially) written.

        Failures to delete are logged rather than raised so they never mask the
        error that caused the cleanup.
        """
        path = self.output_path(archive_name)
        try:
            if self.filesystem.exists(path):
                logger.debug(f"Removing partial output {path}")
                self.filesystem.rm(path)
        except OSError:
            logger.warning(f"Failed to remove partial output {path}", exc_info=True)

    def write_error_report(self, archive_name: str, error: BaseException, details: str) -> str:
        """
        Write the error report of a failed archive.

        :param archive_name: The filename of the failed input archive.
        :param error: The error that made the archive fail.
        :param details: The formatted traceback of the error.
        :return: The path of the written report.
        """
        path = self.error_report_path(archive_name)
        with self.filesystem.open(path, "w", encoding="utf-8") as file:
            file.write(f"<{type(error).__name__}> {error}\n")
            file.write(details)
        return path

    def _list_filenames(self, folder: str) -> list[str]:
        listing = self.filesystem.ls(folder, detail=True)
        return sorted(
            posixpath.basename(item["name"].rstrip("/"))
            for item in listing
            if item["type"] == "file"
        )
