import io
import zipfile

import pytest
from assertpy import assert_that
from morefs.memory import MemFS

from logtrim.archives.log_archive import LogEntry
from logtrim.assembly.stream_assembler import (
    BUFFER_SIZE,
    AssemblyResult,
    assemble,
    copy_stream,
    open_flat_sink,
    open_zip_entry_sink,
)


class InMemorySource:
    def __init__(self, contents: dict[str, bytes]) -> None:
        self.contents = contents
        self.opened: list[str] = []

    def entries(self) -> list[LogEntry]:
        return [LogEntry(name=name, raw_handle=name) for name in self.contents]

    def open_entry(self, entry: LogEntry) -> io.BytesIO:
        self.opened.append(entry.name)
        return io.BytesIO(self.contents[entry.raw_handle])


class FailingSource(InMemorySource):
    def open_entry(self, entry: LogEntry) -> io.BytesIO:
        if entry.name == "interceptor.log":
            raise OSError("Mock read failure")
        return super().open_entry(entry)


@pytest.fixture
def in_memory_filesystem():
    return MemFS()


def test__copy_stream__content_larger_than_buffer__copies_everything() -> None:
    content = bytes(range(256)) * (BUFFER_SIZE // 64)
    destination = io.BytesIO()

    copied = copy_stream(io.BytesIO(content), destination)

    assert copied == len(content)
    assert destination.getvalue() == content


def test__assemble__several_entries__concatenates_in_order_without_separators() -> None:
    source = InMemorySource(
        {
            "interceptor.log": b"tail\n",
            "interceptor.5.1.log": b"first\n",
            "interceptor.5.2.log": b"second",
        }
    )
    by_name = {entry.name: entry for entry in source.entries()}
    ordered = [
        by_name["interceptor.5.1.log"],
        by_name["interceptor.5.2.log"],
        by_name["interceptor.log"],
    ]
    sink = io.BytesIO()

    result = assemble(source, ordered, sink)

    assert sink.getvalue() == b"first\nsecondtail\n"
    assert result == AssemblyResult(entries_copied=3, bytes_written=len(b"first\nsecondtail\n"))
    assert_that(source.opened).is_equal_to(
        ["interceptor.5.1.log", "interceptor.5.2.log", "interceptor.log"]
    )


def test__assemble__no_entries__writes_nothing() -> None:
    sink = io.BytesIO()

    result = assemble(InMemorySource({}), [], sink)

    assert sink.getvalue() == b""
    assert result == AssemblyResult(entries_copied=0, bytes_written=0)


def test__assemble__entry_fails_to_open__propagates_error() -> None:
    source = FailingSource({"interceptor.1.1.log": b"first", "interceptor.log": b"tail"})

    with pytest.raises(OSError, match="Mock read failure"):
        assemble(source, source.entries(), io.BytesIO())


def test__open_zip_entry_sink__written_bytes__stored_as_single_entry(in_memory_filesystem) -> None:
    with open_zip_entry_sink(in_memory_filesystem, "output/bundle.zip") as sink:
        sink.write(b"combined")

    with in_memory_filesystem.open("output/bundle.zip", "rb") as file, zipfile.ZipFile(
        file
    ) as zip_file:
        assert_that(zip_file.namelist()).is_equal_to(["interceptor.log"])
        assert zip_file.read("interceptor.log") == b"combined"


def test__open_zip_entry_sink__nothing_written__stores_empty_entry(in_memory_filesystem) -> None:
    with open_zip_entry_sink(in_memory_filesystem, "output/bundle.zip"):
        pass

    with in_memory_filesystem.open("output/bundle.zip", "rb") as file, zipfile.ZipFile(
        file
    ) as zip_file:
        assert zip_file.read("interceptor.log") == b""


def test__open_flat_sink__written_bytes__stored_verbatim(in_memory_filesystem) -> None:
    with open_flat_sink(in_memory_filesystem, "output/bundle.log") as sink:
        sink.write(b"combined")

    assert in_memory_filesystem.cat_file("output/bundle.log") == b"combined"
