from __future__ import annotations

import importlib.util
import json
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from teamforge.models import Team

TEAM_ENV_VAR = "TEAMFORGE_TEAM"
TEAM_FILE_NAMES = ("teamforge_team.py", "team.py", "teamforge_team.json")
_TEAM_VARIABLES = ("team", "teamforge_team")


def _candidates(base: Path) -> list[Path]:
    # An explicit env var path replaces the conventional names entirely.
    override = os.environ.get(TEAM_ENV_VAR)
    if override:
        path = Path(override)
        return [path if path.is_absolute() else base / path]
    return [base / name for name in TEAM_FILE_NAMES]


def discover_team_path(search_dir: str | Path | None = None) -> Path | None:
    """Return the first Team file found for *search_dir* (default: cwd).

    ``$TEAMFORGE_TEAM`` wins when set, and a missing override yields ``None``
    rather than falling back to the conventional file names.
    """
    base = Path(search_dir) if search_dir else Path.cwd()
    for candidate in _candidates(base):
        if candidate.is_file():
            return candidate.resolve()
    return None


@contextmanager
def _importable_from(directory: Path) -> Iterator[None]:
    entry = str(directory)
    added = entry not in sys.path
    if added:
        sys.path.insert(0, entry)
    try:
        yield
    finally:
        if added and entry in sys.path:
            sys.path.remove(entry)


def _exec_team_module(path: Path) -> Team:
    spec = importlib.util.spec_from_file_location(f"_teamforge_team_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load team from {path}")
    module = importlib.util.module_from_spec(spec)
    # sibling modules of the team file stay importable while it runs
    with _importable_from(path.parent):
        spec.loader.exec_module(module)

    found = (getattr(module, name, None) for name in _TEAM_VARIABLES)
    team = next((obj for obj in found if isinstance(obj, Team)), None)
    if team is None:
        raise ValueError(
            f"Team file {path.name} must define a 'team' or 'teamforge_team' "
            "variable of type Team"
        )
    return team


def _parse_team_json(path: Path) -> Team:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Team file {path.name} is not valid JSON: {e}") from e
    return Team.model_validate(data)


def load_team(path: str | Path) -> Team:
    """Load a :class:`Team` from a ``.py`` or ``.json`` file.

    Raises:
        FileNotFoundError: If *path* is not a file.
        ValueError: If a Python file defines no Team or a JSON file is malformed.
        pydantic.ValidationError: If JSON content does not describe a Team.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Team file not found: {path}")
    if path.suffix == ".json":
        return _parse_team_json(path)
    return _exec_team_module(path)


def discover_and_load(search_dir: str | Path | None = None) -> Team | None:
    path = discover_team_path(search_dir)
    return load_team(path) if path is not None else None
