from __future__ import annotations

import json
import shutil
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from filelock import FileLock


class LocalFileSystem:
    """Synchronous filesystem access used by every provider.

    Providers never touch :mod:`os` or :mod:`pathlib` I/O directly, so tests
    can substitute a recording subclass.
    """

    def __init__(self, home: str | Path | None = None) -> None:
        self._home = Path(home) if home is not None else None

    def home_dir(self) -> Path:
        return self._home if self._home is not None else Path.home()

    def mkdir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def remove(self, path: Path) -> None:
        """Remove a file or a directory tree. Missing paths are ignored."""
        path = Path(path)
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        Path(path).write_text(content, encoding="utf-8")

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def count_entries(self, path: Path, suffix: str | None = ".md") -> int:
        """Count direct children of *path*; files matching *suffix*, or subdirectories when ``None``."""
        path = Path(path)
        if not path.is_dir():
            return 0
        if suffix is None:
            return sum(1 for p in path.iterdir() if p.is_dir())
        return sum(1 for p in path.iterdir() if p.is_file() and p.name.endswith(suffix))

    def modified_at(self, path: Path) -> str | None:
        try:
            mtime = Path(path).stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()

    @contextmanager
    def locked(self, path: Path) -> Generator[None, None, None]:
        """Hold an inter-process lock for read-merge-write of *path*."""
        lock_path = Path(path).with_name(Path(path).name + ".lock")
        with FileLock(str(lock_path)):
            yield

    # -- JSON helpers built on read_text / write_text -----------------------

    def read_json(self, path: Path) -> dict[str, Any]:
        """Load a JSON object, returning ``{}`` when the file is absent."""
        try:
            raw = self.read_text(path)
        except FileNotFoundError:
            return {}
        data = json.loads(raw) if raw.strip() else {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object")
        return data

    def write_json(self, path: Path, data: dict[str, Any]) -> None:
        self.write_text(path, json.dumps(data, indent=2) + "\n")
