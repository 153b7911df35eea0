"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, storectl.toml only contains
overrides. An empty (or absent) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- storectl.toml sections ---


class ScriptConfig(BaseModel):
    """[script] section."""

    model_config = {"frozen": True}

    encoding: str = "utf-8"
    comment_prefix: str = "#"
    echo: bool = False


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    device_log: bool = True
    entry_points: bool = True
    disabled: tuple[str, ...] = ()


class StoreConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    script: ScriptConfig = Field(default_factory=ScriptConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
