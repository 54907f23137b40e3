"""
Environment + project-root helpers.

The API server, the CLI and pytest may all start from different working directories, so:
- a repo-local `.env` (API keys, database URL) may or may not be picked up
- the default `sqlite:///data/saferoute.db` would land in a different place each time

`load_dotenv_if_present()` loads `.env` once without overriding the process environment.
`resolve_project_path()` anchors relative paths at `get_project_root()`.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ROOT_MARKERS = (".env", ".git")


def _is_project_root(path: Path) -> bool:
    if any((path / marker).exists() for marker in ROOT_MARKERS):
        return True
    return (path / "pyproject.toml").is_file() and (path / "src" / "saferoute").is_dir()


def _search_upwards(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in (start, *start.parents):
        if _is_project_root(candidate):
            return candidate
    return None


def _explicit_env_file() -> Path | None:
    raw = os.getenv("SAFEROUTE_ENV_FILE")
    return Path(raw).expanduser().resolve() if raw else None


@lru_cache
def get_project_root() -> Path:
    """Return the project root (cached).

    Order: `SAFEROUTE_PROJECT_ROOT`, the directory of `SAFEROUTE_ENV_FILE`, the nearest marked
    parent of the CWD, the nearest marked parent of this package, then the CWD itself.
    """
    override = os.getenv("SAFEROUTE_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    env_file = _explicit_env_file()
    if env_file is not None:
        return env_file.parent

    found = _search_upwards(Path.cwd()) or _search_upwards(Path(__file__).parent)
    return found or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `.env` once; returns the file that was loaded, if any."""
    env_path = _explicit_env_file() or get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
