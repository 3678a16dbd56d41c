"""
`.env` discovery and loading.

Geocoder contact details and log levels usually live in a repo-local `.env` file,
while the CLI and the API may be launched from any working directory. Lookup order:

1. `HELMETLINK_ENV_FILE` (an explicit file; missing means "no env file")
2. `HELMETLINK_PROJECT_ROOT/.env`
3. the working directory and its parents, up to the enclosing repo root
4. the installed package's parents, up to the enclosing repo root

Values already present in the process environment always win.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_FILE_NAME = ".env"


def _is_repo_root(directory: Path) -> bool:
    return (directory / ".git").exists() or (directory / "pyproject.toml").is_file()


def _search_upwards(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        candidate = directory / ENV_FILE_NAME
        if candidate.is_file():
            return candidate
        if _is_repo_root(directory):
            break
    return None


def find_env_file() -> Path | None:
    """Return the `.env` file that would be loaded, or None."""
    explicit = os.getenv("HELMETLINK_ENV_FILE")
    if explicit:
        path = Path(explicit).expanduser().resolve()
        return path if path.is_file() else None

    root = os.getenv("HELMETLINK_PROJECT_ROOT")
    if root:
        path = Path(root).expanduser().resolve() / ENV_FILE_NAME
        return path if path.is_file() else None

    return _search_upwards(Path.cwd().resolve()) or _search_upwards(Path(__file__).resolve().parent)


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the `.env` file once (cached); returns its path, or None if there is none."""
    path = find_env_file()
    if path is not None:
        load_dotenv(dotenv_path=path, override=False)
    return path
