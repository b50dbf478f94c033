import zipfile

import pytest
from assertpy import assert_that
from morefs.memory import MemFS

from logtrim.assembly.stream_assembler import AssemblyResult
from logtrim.transform.archive_transformer import (
    ArchiveTransformer,
    TransformOutcome,
    TransformResult,
)
from logtrim.transform.transform_storage import OutputMode, TransformStorage

INPUT_FOLDER = "input"
OUTPUT_FOLDER = "output"

BUNDLE_MEMBERS = {
    "interceptor.log": b"[main]\n",
    "interceptor.3.1.log": b"[day 3]\n",
    "logs/interceptor.5.2.log": b"[day 5, part 2]\n",
    "interceptor.5.1.log": b"[day 5, part 1]\n",
    "readme.md": b"ignored\n",
}
EXPECTED_COMBINED = b"[day 5, part 1]\n[day 5, part 2]\n[main]\n"


def write_zip(filesystem, path: str, members: dict[str, bytes]) -> None:
    with filesystem.open(path, "wb") as file, zipfile.ZipFile(file, "w") as zip_file:
        for name, content in members.items():
            zip_file.writestr(name, content)


def read_zip(filesystem, path: str) -> dict[str, bytes]:
    with filesystem.open(path, "rb") as file, zipfile.ZipFile(file) as zip_file:
        return {name: zip_file.read(name) for name in zip_file.namelist()}


@pytest.fixture
def in_memory_filesystem():
    filesystem = MemFS()
    filesystem.makedirs(OUTPUT_FOLDER, exist_ok=True)
    return filesystem


def _transformer(filesystem, output_mode: OutputMode) -> ArchiveTransformer:
    return ArchiveTransformer(
        storage=TransformStorage(
            filesystem=filesystem,
            input_folder=INPUT_FOLDER,
            output_folder=OUTPUT_FOLDER,
            output_mode=output_mode,
        ),
    )


def test__transform__zip_mode__writes_single_combined_entry(in_memory_filesystem) -> None:
    write_zip(in_memory_filesystem, f"{INPUT_FOLDER}/bundle.zip", BUNDLE_MEMBERS)

    result = _transformer(in_memory_filesystem, OutputMode.ZIP).transform("bundle.zip")

    assert result == TransformResult(
        "bundle.zip",
        TransformOutcome.COMPLETE,
        assembly=AssemblyResult(entries_copied=3, bytes_written=len(EXPECTED_COMBINED)),
    )
    assert read_zip(in_memory_filesystem, f"{OUTPUT_FOLDER}/bundle.zip") == {
        "interceptor.log": EXPECTED_COMBINED,
    }


def test__transform__flat_mode__writes_plain_log_file(in_memory_filesystem) -> None:
    write_zip(in_memory_filesystem, f"{INPUT_FOLDER}/bundle.zip", BUNDLE_MEMBERS)

    result = _transformer(in_memory_filesystem, OutputMode.FLAT).transform("bundle.zip")

    assert result.successful
    assert in_memory_filesystem.cat_file(f"{OUTPUT_FOLDER}/bundle.log") == EXPECTED_COMBINED


def test__transform__combined_length__is_sum_of_selected_entries(in_memory_filesystem) -> None:
    members = {
        "interceptor.8.1.log": b"a" * 10_000,
        "interceptor.8.2.log": b"b" * 5_123,
        "interceptor.7.1.log": b"c" * 999,
    }
    write_zip(in_memory_filesystem, f"{INPUT_FOLDER}/bundle.zip", members)

    result = _transformer(in_memory_filesystem, OutputMode.FLAT).transform("bundle.zip")

    combined = in_memory_filesystem.cat_file(f"{OUTPUT_FOLDER}/bundle.log")
    assert len(combined) == 10_000 + 5_123
    assert combined == b"a" * 10_000 + b"b" * 5_123
    assert result.assembly == AssemblyResult(entries_copied=2, bytes_written=15_123)


def test__transform__no_qualifying_entries__writes_empty_log(in_memory_filesystem) -> None:
    write_zip(
        in_memory_filesystem,
        f"{INPUT_FOLDER}/bundle.zip",
        {"foo.txt": b"foo", "readme.md": b"readme"},
    )

    result = _transformer(in_memory_filesystem, OutputMode.ZIP).transform("bundle.zip")

    assert result.outcome is TransformOutcome.COMPLETE
    assert read_zip(in_memory_filesystem, f"{OUTPUT_FOLDER}/bundle.zip") == {
        "interceptor.log": b"",
    }


def test__transform__corrupt_archive__writes_error_report_and_no_output(
    in_memory_filesystem,
) -> None:
    in_memory_filesystem.pipe_file(f"{INPUT_FOLDER}/broken.zip", b"not a zip")

    result = _transformer(in_memory_filesystem, OutputMode.ZIP).transform("broken.zip")

    assert result.outcome is TransformOutcome.ERROR
    assert not result.successful
    assert_that(result.error).is_instance_of(zipfile.BadZipFile)
    assert not in_memory_filesystem.exists(f"{OUTPUT_FOLDER}/broken.zip")

    report = in_memory_filesystem.cat_file(f"{OUTPUT_FOLDER}/broken.error").decode("utf-8")
    assert_that(report).starts_with("<BadZipFile> ").contains("Traceback")


def test__transform__failure_while_copying__removes_partial_output(
    in_memory_filesystem, monkeypatch
) -> None:
    write_zip(in_memory_filesystem, f"{INPUT_FOLDER}/bundle.zip", BUNDLE_MEMBERS)

    def _failing_assemble(source, entries, sink):
        sink.write(b"partial")
        raise OSError("Mock read failure")

    monkeypatch.setattr(
        "logtrim.transform.archive_transformer.assemble",
        _failing_assemble,
    )

    result = _transformer(in_memory_filesystem, OutputMode.FLAT).transform("bundle.zip")

    assert result.outcome is TransformOutcome.ERROR
    assert not in_memory_filesystem.exists(f"{OUTPUT_FOLDER}/bundle.log")
    report = in_memory_filesystem.cat_file(f"{OUTPUT_FOLDER}/bundle.error").decode("utf-8")
    assert_that(report).starts_with("<OSError> Mock read failure\n")


def test__transform_outcome__successful_flags() -> None:
    assert TransformOutcome.COMPLETE.successful
    assert TransformOutcome.ALREADY_PROCESSED.successful
    assert not TransformOutcome.ERROR.successful


def test__transform__error_report_cannot_be_written__still_returns_error(
    in_memory_filesystem, monkeypatch
) -> None:
    in_memory_filesystem.pipe_file(f"{INPUT_FOLDER}/broken.zip", b"not a zip")
    transformer = _transformer(in_memory_filesystem, OutputMode.ZIP)

    def _failing_write(archive_name, error, details):
        raise OSError("disk full")

    monkeypatch.setattr(transformer.storage, "write_error_report", _failing_write)

    result = transformer.transform("broken.zip")

    assert result.outcome is TransformOutcome.ERROR
    assert_that(result.error).is_instance_of(zipfile.BadZipFile)
    assert not in_memory_filesystem.exists(f"{OUTPUT_FOLDER}/broken.error")
