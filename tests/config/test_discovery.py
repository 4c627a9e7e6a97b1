"""Tests for config discovery."""

import logging
from pathlib import Path

import pytest

from depcycle.config.discovery import CONFIG_FILENAME, find_config


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[resolve]\nmax_passes = 2\n")
        assert find_config(tmp_path) == config_file

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        monkeypatch.setenv("DEPCYCLE_CONFIG", str(config_file))
        assert find_config(tmp_path / "elsewhere") == config_file

    def test_env_var_missing_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("DEPCYCLE_CONFIG", str(tmp_path / "gone.toml"))
        with caplog.at_level(logging.WARNING, logger="depcycle.config.discovery"):
            assert find_config(tmp_path) is None
        assert "gone.toml" in caplog.text

    def test_nearest_file_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        inner = tmp_path / "project"
        inner.mkdir()
        (inner / CONFIG_FILENAME).write_text("")
        assert find_config(inner / "src") == inner / CONFIG_FILENAME
