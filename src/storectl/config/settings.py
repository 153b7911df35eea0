"""StoreSettings: CLI flags, environment and ``storectl.toml`` merged once.

Sources, strongest first:

1. keyword arguments (the root command's flags)
2. ``STORECTL_*`` environment variables, ``__`` separating nested keys
   (``STORECTL_SCRIPT__ECHO=true``)
3. the config file picked by :func:`resolve_config_path`
4. defaults baked into :mod:`storectl.config.models`
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from storectl.config.discovery import read_config, resolve_config_path
from storectl.config.models import PluginsConfig, ScriptConfig

# Parsed file contents handed to settings_customise_sources() for the
# duration of one StoreSettings construction.
_file_sections: ContextVar[dict[str, Any] | None] = ContextVar("_file_sections", default=None)


class FileSettingsSource(PydanticBaseSettingsSource):
    """Serve already-parsed ``storectl.toml`` sections to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], sections: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._sections = sections

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._sections.get(field_name), field_name, field_name in self._sections

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._sections.items() if k in self.settings_cls.model_fields}


class StoreSettings(BaseSettings):
    """Everything a storectl invocation is configured with.

    Built by the root command, kept on :class:`AppContext`, and passed to the
    Registry (which reads ``plugins``) and the script commands (``script``).
    """

    model_config = {
        "frozen": True,
        "env_prefix": "STORECTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    script: ScriptConfig = Field(default_factory=ScriptConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            FileSettingsSource(settings_cls, _file_sections.get() or {}),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> StoreSettings:
        """Build settings for one CLI invocation.

        Raises:
            click.ClickException: the config file is missing (when named
                explicitly) or is not valid TOML.
        """
        path = resolve_config_path(config_path, start)
        sections = read_config(path) if path is not None else {}
        token = _file_sections.set(sections)
        try:
            return cls(config_path=path, **cli_flags)
        finally:
            _file_sections.reset(token)
