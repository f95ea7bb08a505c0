"""Config file discovery and loading.

Settings live in ``fairlend.toml`` or, for repositories that already carry
one, in the ``[tool.fairlend]`` table of ``pyproject.toml``. The finder walks
up from the working directory; at each level ``fairlend.toml`` wins, and a
``pyproject.toml`` without the table is skipped. ``FAIRLEND_CONFIG`` and
``--config`` name a file directly.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from fairlend.config.models import FairlendConfig

CONFIG_FILENAME = "fairlend.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "FAIRLEND_CONFIG"


def read_config_table(path: Path) -> dict[str, Any]:
    """Parse *path* and return the fairlend settings it holds.

    A ``pyproject.toml`` contributes only its ``[tool.fairlend]`` table.

    Raises:
        tomllib.TOMLDecodeError: The file is not valid TOML.
    """
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("fairlend", {})
        return table if isinstance(table, dict) else {}
    return data


def _declares_tool_table(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("tool", {}).get("fairlend"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for fairlend settings.

    Returns the config file, or None if not found. ``FAIRLEND_CONFIG`` is
    checked first; when it names a missing file nothing is loaded.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _declares_tool_table(pyproject):
            return pyproject
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> FairlendConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default FairlendConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return FairlendConfig()

    return FairlendConfig.model_validate(read_config_table(path))
