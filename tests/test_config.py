"""Tests for imagebuilder configuration."""

from __future__ import annotations

import os
import stat
from dataclasses import asdict
from pathlib import Path
from unittest.mock import patch

import pytest

from imagebuilder.config import Config, get_config_dir, get_config_path, load_config, save_config
from imagebuilder.errors import ConfigError


class TestConfig:
    """Tests for configuration model."""

    def test_config_defaults(self) -> None:
        """Test default configuration values."""
        config = Config()
        assert config.registries == []
        assert config.login_email == "no@example.com"
        assert config.verbose is True

    def test_registries_not_shared(self) -> None:
        """Each Config gets its own registries list."""
        first = Config()
        first.registries.append("https://u:p@r.io")
        assert Config().registries == []

    def test_config_serialization(self) -> None:
        data = asdict(Config(build_timeout=42))
        assert data["build_timeout"] == 42


class TestConfigFunctions:
    """Tests for config utility functions."""

    def test_get_config_dir(self) -> None:
        assert get_config_dir().name == ".imagebuilder"

    def test_get_config_path(self) -> None:
        assert get_config_path().name == "config.json"

    def test_save_and_load_config(self, tmp_path: Path) -> None:
        """Test config persistence."""
        with patch("imagebuilder.config.get_config_dir", return_value=tmp_path):
            save_config(Config(registries=["https://u:p@r.io"], verbose=False))
            loaded = load_config()
        assert loaded.registries == ["https://u:p@r.io"]
        assert loaded.verbose is False

    def test_saved_config_is_private(self, tmp_path: Path) -> None:
        with patch("imagebuilder.config.get_config_dir", return_value=tmp_path):
            save_config(Config())
        mode = stat.S_IMODE(os.stat(tmp_path / "config.json").st_mode)
        assert mode == 0o600

    def test_load_config_missing(self, tmp_path: Path) -> None:
        with patch("imagebuilder.config.get_config_dir", return_value=tmp_path):
            assert load_config() == Config()

    def test_load_config_invalid_json(self, tmp_path: Path) -> None:
        """Test loading invalid config file."""
        config_file = tmp_path / "config.json"
        config_file.write_text("invalid json")
        with patch("imagebuilder.config.get_config_path", return_value=config_file):
            assert load_config() == Config()

    def test_load_config_not_an_object(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.json"
        config_file.write_text("[1, 2]")
        with patch("imagebuilder.config.get_config_path", return_value=config_file):
            assert load_config() == Config()

    def test_load_config_ignores_unknown_keys(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.json"
        config_file.write_text('{"login_email": "ci@example.com", "legacy": 1}')
        with patch("imagebuilder.config.get_config_path", return_value=config_file):
            assert load_config().login_email == "ci@example.com"

    def test_save_config_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        with patch("imagebuilder.config.get_config_dir", return_value=blocker / "sub"):
            with pytest.raises(ConfigError):
                save_config(Config())
