"""CfmanSettings: one frozen object built from flags, env vars, and ``cfman.toml``.

Sources, highest priority first:

1. keyword arguments (the CLI flags)
2. ``CFMAN_*`` environment variables, ``__`` between nested keys
   (``CFMAN_WORKERS__DOMAIN``)
3. the TOML file, from ``--config``, ``CFMAN_CONFIG`` or walk-up discovery
4. defaults on the section models
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cfman.config.discovery import find_config, load_config
from cfman.config.models import PluginsConfig, WorkersConfig

# TOML path for the settings object currently being constructed.
_active_toml: ContextVar[Path | None] = ContextVar("_active_toml", default=None)


def _read_toml(path: Path) -> dict[str, Any]:
    """The sections *path* actually sets, validated against ``CfmanConfig``."""
    try:
        return load_config(path).model_dump(exclude_unset=True)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
    except ValidationError as exc:
        msg = f"Invalid config in {path}: {exc}"
        raise click.ClickException(msg) from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a parsed ``cfman.toml``. A missing file is empty."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = _read_toml(toml_path) if toml_path and toml_path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


class CfmanSettings(BaseSettings):
    """Process-wide settings, held by the CLI context and passed to bootstrap.

    Attributes:
        config_path: The TOML file that was loaded, if any.
        no_discover: Skip entry-point plugin discovery for this run.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CFMAN_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_discover: bool = False

    workers: WorkersConfig = Field(default_factory=WorkersConfig)
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
            TomlSettingsSource(settings_cls, _active_toml.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> CfmanSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist means "no file";
        discovery is not attempted in that case. Without one, the config
        is searched upward from *start* (default: cwd).
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(start)

        token = _active_toml.set(toml_path)
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _active_toml.reset(token)
