"""Locating and reading ``storectl.toml``.

Lookup order: an explicit ``--config`` path, then ``STORECTL_CONFIG``, then
the first ``storectl.toml`` found walking up from the working directory.
A missing file is not an error (defaults apply) except when the path was
given explicitly on the command line.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import click

from storectl.config.models import StoreConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "storectl.toml"
CONFIG_ENV_VAR = "STORECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any.

    ``STORECTL_CONFIG`` short-circuits the walk-up; when it names a file that
    does not exist, no config is used.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        return candidate if candidate.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(config_path: str | None, start: Path | None = None) -> Path | None:
    """Pick the config file for a CLI invocation.

    Raises:
        click.ClickException: *config_path* was given but is not a file.
    """
    if config_path is None:
        return find_config(start)
    explicit = Path(config_path)
    if not explicit.is_file():
        msg = f"Config file not found: {config_path}"
        raise click.ClickException(msg)
    return explicit


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML, reporting syntax errors as a CLI error."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc

    unknown = sorted(set(data) - set(StoreConfig.model_fields))
    if unknown:
        logger.warning("Ignoring unknown config sections in %s: %s", path, ", ".join(unknown))
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> StoreConfig:
    """Validate the sections of *path* (discovered from *cwd* when omitted)."""
    if path is None:
        path = find_config(cwd)
    if path is None:
        return StoreConfig()
    return StoreConfig.model_validate(read_config(path))
