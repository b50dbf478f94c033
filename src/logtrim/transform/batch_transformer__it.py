import zipfile

import pytest
from fsspec.implementations.local import LocalFileSystem

from logtrim.transform.archive_transformer import ArchiveTransformer
from logtrim.transform.batch_transformer import BatchTransformer
from logtrim.transform.transform_storage import OutputMode, TransformStorage

pytestmark = pytest.mark.integration


def _write_bundle(path, members: dict[str, bytes]) -> None:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zip_file:
        for name, content in members.items():
            zip_file.writestr(name, content)


@pytest.fixture
def input_folder(tmp_path):
    folder = tmp_path / "2020" / "06" / "26"
    folder.mkdir(parents=True)
    _write_bundle(
        folder / "station-01.zip",
        {
            "interceptor.20200625.1.log": b"yesterday\n",
            "interceptor.20200626.2.log": b"today, part 2\n",
            "interceptor.20200626.1.log": b"today, part 1\n",
            "interceptor.log": b"still open\n",
        },
    )
    _write_bundle(folder / "station-02.zip", {"interceptor.log": b"only main\n"})
    (folder / "station-03.zip").write_bytes(b"truncated download")
    return folder


def _batch(input_folder, output_folder, output_mode: OutputMode) -> BatchTransformer:
    storage = TransformStorage(
        filesystem=LocalFileSystem(),
        input_folder=str(input_folder),
        output_folder=str(output_folder),
        output_mode=output_mode,
    )
    return BatchTransformer(
        storage=storage,
        archive_transformer=ArchiveTransformer(storage=storage),
    )


def test__transform_all__zip_mode_on_local_disk__writes_reduced_archives(
    input_folder, tmp_path
) -> None:
    output_folder = tmp_path / "output"

    summary = _batch(input_folder, output_folder, OutputMode.ZIP).transform_all()

    assert summary.processed == 2
    assert summary.errors == 1
    with zipfile.ZipFile(output_folder / "station-01.zip") as zip_file:
        assert zip_file.namelist() == ["interceptor.log"]
        assert zip_file.read("interceptor.log") == b"today, part 1\ntoday, part 2\nstill open\n"
    with zipfile.ZipFile(output_folder / "station-02.zip") as zip_file:
        assert zip_file.read("interceptor.log") == b"only main\n"
    assert not (output_folder / "station-03.zip").exists()
    assert (output_folder / "station-03.error").read_text(encoding="utf-8").startswith(
        "<BadZipFile>"
    )


def test__transform_all__second_run__only_retries_failed_archive(input_folder, tmp_path) -> None:
    output_folder = tmp_path / "output"
    _batch(input_folder, output_folder, OutputMode.ZIP).transform_all()

    summary = _batch(input_folder, output_folder, OutputMode.ZIP).transform_all()

    assert summary.ignored == 2
    assert summary.processed == 0
    assert summary.errors == 1


def test__transform_all__flat_mode_on_local_disk__writes_log_files(input_folder, tmp_path) -> None:
    output_folder = tmp_path / "output"

    _batch(input_folder, output_folder, OutputMode.FLAT).transform_all()

    assert (output_folder / "station-01.log").read_bytes() == (
        b"today, part 1\ntoday, part 2\nstill open\n"
    )
    assert (output_folder / "station-02.log").read_bytes() == b"only main\n"
