"""Config file discovery and loading.

Walk-up finder locates the nearest ``pyproject.toml``, similar to how git
finds .git/, and reads its ``[tool.polydata]`` table. The POLYDATA_CONFIG
env var may point at a standalone TOML file instead.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "POLYDATA_CONFIG"
TOOL_TABLE = "polydata"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for pyproject.toml.

    Returns the path to the config file, or None if not found.
    Checks POLYDATA_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PYPROJECT_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> dict[str, Any]:
    """Load the polydata settings table from a TOML file.

    For a ``pyproject.toml`` only the ``[tool.polydata]`` table is returned;
    any other file is read whole. Returns an empty dict when nothing is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return {}

    raw = path.read_text(encoding="utf-8")
    data: dict[str, Any] = tomllib.loads(raw)
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get(TOOL_TABLE, {})
        return dict(table) if isinstance(table, dict) else {}
    return data
