"""Tests for config discovery: walk-up search and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from cfman.config.discovery import CONFIG_ENV_VAR, find_config, load_config
from cfman.config.models import CfmanConfig


@pytest.fixture(autouse=True)
def _no_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / "cfman.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "cfman.toml").resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "cfman.toml").write_text("")
        nested = tmp_path / "x" / "y"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "cfman.toml").resolve()

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "cfman.toml").write_text("")
        other = tmp_path / "other.toml"
        other.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(other))
        assert find_config(tmp_path) == other

    def test_dangling_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        assert load_config(cwd=tmp_path) == CfmanConfig()

    def test_loads_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "cfman.toml"
        path.write_text('[workers]\ndomain = "example.dev"\n')
        config = load_config(path)
        assert config.workers.domain == "example.dev"
        assert config.plugins.discover is True
