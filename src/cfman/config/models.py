"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``cfman.toml`` holds overrides only.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WorkersConfig(BaseModel):
    """[workers] section."""

    model_config = {"frozen": True}

    compatibility_date: str = "2025-01-01"
    domain: str = "workers.dev"


class PluginsConfig(BaseModel):
    """[plugins] section.

    Attributes:
        discover: Load third-party resource plugins from entry points.
        disabled: Resource types to skip at bootstrap.
    """

    model_config = {"frozen": True}

    discover: bool = True
    disabled: list[str] = Field(default_factory=list)


class CfmanConfig(BaseModel):
    """Top-level ``cfman.toml`` model."""

    model_config = {"frozen": True}

    workers: WorkersConfig = Field(default_factory=WorkersConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
