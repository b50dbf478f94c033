import zipfile

import pytest

from logtrim.run import transform_latest_day
from logtrim.setup.dependency_injection import init_dependencies_from_env

pytestmark = pytest.mark.integration


@pytest.fixture
def wired_container(monkeypatch, tmp_path):
    input_folder = tmp_path / "input"
    input_folder.mkdir()
    with zipfile.ZipFile(input_folder / "bundle.zip", "w") as zip_file:
        zip_file.writestr("interceptor.1.1.log", b"day one\n")
        zip_file.writestr("interceptor.log", b"main\n")

    monkeypatch.setenv("INPUT_FOLDER", str(input_folder))
    monkeypatch.setenv("OUTPUT_FOLDER", str(tmp_path / "output"))
    monkeypatch.delenv("OUTPUT_MODE", raising=False)
    monkeypatch.delenv("FILESYSTEM_PROTOCOL", raising=False)
    monkeypatch.delenv("MAX_WORKERS", raising=False)

    container = init_dependencies_from_env()
    container.wire(modules=[transform_latest_day])
    yield tmp_path
    container.unwire()


def test__main__wired_from_env__transforms_folder_and_returns_zero(wired_container) -> None:
    assert transform_latest_day._main() == 0

    with zipfile.ZipFile(wired_container / "output" / "bundle.zip") as zip_file:
        assert zip_file.read("interceptor.log") == b"day one\nmain\n"
