"""Concatenates selected archive entries into a single destination stream."""

from __future__ import annotations

import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, cast

from logtrim.logging import logger

if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from fsspec import AbstractFileSystem

    from logtrim.archives.log_archive import EntrySource, LogEntry

BUFFER_SIZE = 4096
COMBINED_ENTRY_NAME = "interceptor.log"


@dataclass(frozen=True)
class AssemblyResult:
    """Summary of one concatenation."""

    entries_copied: int
    bytes_written: int


def copy_stream(source: IO[bytes], destination: IO[bytes]) -> int:
    """
    Copy every byte from the source to the destination.

    :return: The number of bytes copied.
    """
    copied = 0
    while chunk := source.read(BUFFER_SIZE):
        destination.write(chunk)
        copied += len(chunk)
    return copied


def assemble(
    source: EntrySource,
    entries: Sequence[LogEntry],
    sink: IO[bytes],
) -> AssemblyResult:
    """
    Copy the content of each entry, in order, into the sink.

    Nothing is written between entries. Any error while opening or reading an
    entry propagates to the caller, which owns cleanup of the sink.

    :param source: The archive the entries belong to.
    :param entries: The entries to concatenate, in concatenation order.
    :param sink: The destination byte stream.
    :return: The number of entries and bytes copied.
    """
    bytes_written = 0
    for entry in entries:
        with source.open_entry(entry) as entry_stream:
            bytes_written += copy_stream(entry_stream, sink)
        logger.debug(f"Appended {entry.name} ({bytes_written} bytes so far)")

    sink.flush()
    return AssemblyResult(entries_copied=len(entries), bytes_written=bytes_written)


@contextmanager
def open_zip_entry_sink(
    filesystem: AbstractFileSystem,
    path: str,
    entry_name: str = COMBINED_ENTRY_NAME,
) -> Generator[IO[bytes], None, None]:
    """
    Create a new zip archive holding a single entry and yield that entry's stream.

    :param filesystem: The filesystem to create the archive on.
    :param path: The path of the new archive.
    :param entry_name: The name of the single entry.
    """
    with (
        filesystem.open(path, "wb") as file,
        zipfile.ZipFile(
            cast("IO[bytes]", file),
            "w",
            compression=zipfile.ZIP_DEFLATED,
        ) as zip_file,
        zip_file.open(entry_name, "w", force_zip64=True) as entry_stream,
    ):
        yield entry_stream


@contextmanager
def open_flat_sink(
    filesystem: AbstractFileSystem,
    path: str,
) -> Generator[IO[bytes], None, None]:
    """
    Open a plain output file as the destination stream.

    :param filesystem: The filesystem to create the file on.
    :param path: The path of the output file.
    """
    with filesystem.open(path, "wb") as file:
        yield cast("IO[bytes]", file)
