"""Locating and loading ``cfman.toml``.

Lookup order: the ``CFMAN_CONFIG`` env var, then the nearest
``cfman.toml`` in the start directory or any of its ancestors.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from cfman.config.models import CfmanConfig

CONFIG_FILENAME = "cfman.toml"
CONFIG_ENV_VAR = "CFMAN_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect for *start* (default: cwd), or None.

    A ``CFMAN_CONFIG`` pointing at a missing file yields None; the walk-up
    is not used as a fallback.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML. Raises :class:`tomllib.TOMLDecodeError`."""
    return tomllib.loads(path.read_text(encoding="utf-8"))


def load_config(path: Path | None = None, cwd: Path | None = None) -> CfmanConfig:
    """Validated file config; all defaults when no file is found."""
    path = path or find_config(cwd)
    if path is None:
        return CfmanConfig()
    return CfmanConfig.model_validate(read_toml(path))
