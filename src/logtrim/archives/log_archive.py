"""Reads the members of a zipped log bundle as named byte streams."""

from __future__ import annotations

import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, Protocol, cast

from logtrim.logging import logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from fsspec import AbstractFileSystem


def base_filename(member_name: str) -> str:
    """
    Strip any directory part from an archive member name.

    Archives built on Windows may use backslashes, so both separators are honoured.

    :param member_name: The full member name as stored in the archive.
    :return: The final path component, or an empty string for directory members.
    """
    return member_name.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class LogEntry:
    """
    Represents one file inside an archive.

    The raw handle is owned by the archive that produced the entry and is only
    usable while that archive is open.
    """

    name: str
    raw_handle: object


class EntrySource(Protocol):
    """Anything that can open the content of the entries it produced."""

    def open_entry(self, entry: LogEntry) -> IO[bytes]:
        """Open the content of the entry as a readable byte stream."""
        ...


class LogArchive:
    """A zip archive opened for reading, exposing its members as LogEntry values."""

    def __init__(self, zip_file: zipfile.ZipFile) -> None:
        """
        Initialize the LogArchive around an open zip file.

        :param zip_file: The zip file to read entries from.
        """
        self.zip_file = zip_file

    def entries(self) -> list[LogEntry]:
        """
        List the file members of the archive in archive order.

        Directory members are skipped.

        :return: A LogEntry for every file member.
        """
        return [
            LogEntry(name=base_filename(info.filename), raw_handle=info)
            for info in self.zip_file.infolist()
            if not info.is_dir()
        ]

    def open_entry(self, entry: LogEntry) -> IO[bytes]:
        """
        Open the content of an entry of this archive.

        :param entry: An entry returned by `entries`.
        :return: A readable byte stream over the decompressed content.
        """
        return self.zip_file.open(cast("zipfile.ZipInfo", entry.raw_handle), "r")


@contextmanager
def open_log_archive(
    filesystem: AbstractFileSystem,
    path: str,
) -> Generator[LogArchive, None, None]:
    """
    Open the zip archive at the given path for reading.

    :param filesystem: The filesystem holding the archive.
    :param path: The path of the archive.
    :raises zipfile.BadZipFile: If the file is not a readable zip archive.
    """
    logger.debug(f"Opening log archive {path}")
    with (
        filesystem.open(path, "rb") as file,
        zipfile.ZipFile(cast("IO[bytes]", file), "r") as zip_file,
    ):
        yield LogArchive(zip_file)
