from __future__ import annotations

from pathlib import Path

import pytest

from teamforge.deployment import DeploymentService
from teamforge.fs import LocalFileSystem


class RecordingFileSystem(LocalFileSystem):
    """Real filesystem that remembers every mutating call."""

    def __init__(self, home: Path) -> None:
        super().__init__(home=home)
        self.writes: list[Path] = []
        self.mkdirs: list[Path] = []
        self.removes: list[Path] = []

    def write_text(self, path: Path, content: str) -> None:
        self.writes.append(Path(path))
        super().write_text(path, content)

    def mkdir(self, path: Path) -> None:
        self.mkdirs.append(Path(path))
        super().mkdir(path)

    def remove(self, path: Path) -> None:
        self.removes.append(Path(path))
        super().remove(path)

    def writes_under(self, base: Path) -> list[Path]:
        return [p for p in self.writes if p.is_relative_to(base)]


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def spy_fs(home_dir: Path) -> RecordingFileSystem:
    return RecordingFileSystem(home_dir)


@pytest.fixture
def service(spy_fs: RecordingFileSystem) -> DeploymentService:
    return DeploymentService(fs=spy_fs)


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file() and not p.name.endswith(".lock")
    }


@pytest.fixture
def snapshot():
    """Map of relative path -> bytes for every file under a root, lock files excluded."""
    return _snapshot
