"""Tests for Docker config path utilities."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from imagebuilder.paths import (
    docker_config_candidates,
    find_cached_docker_config,
    get_default_docker_config_dir,
    get_docker_env,
)


class TestDockerConfigCandidates:
    """Tests for docker_config_candidates function."""

    def test_home_only(self, isolated_home: Path) -> None:
        assert docker_config_candidates({}) == [isolated_home / ".docker" / "config.json"]

    def test_override_first(self, isolated_home: Path, tmp_path: Path) -> None:
        candidates = docker_config_candidates({"DOCKER_CONFIG": str(tmp_path)})
        assert candidates == [
            tmp_path / "config.json",
            isolated_home / ".docker" / "config.json",
        ]

    def test_default_dir(self, isolated_home: Path) -> None:
        assert get_default_docker_config_dir() == isolated_home / ".docker"


class TestFindCachedDockerConfig:
    """Tests for find_cached_docker_config function."""

    def test_none_found(self, isolated_home: Path) -> None:
        assert find_cached_docker_config({}) is None

    def test_home_location(self, isolated_home: Path) -> None:
        config = isolated_home / ".docker" / "config.json"
        config.parent.mkdir()
        config.write_text("{}")
        assert find_cached_docker_config({}) == config

    def test_override_wins(self, isolated_home: Path, tmp_path: Path) -> None:
        (isolated_home / ".docker").mkdir()
        (isolated_home / ".docker" / "config.json").write_text("home")
        override = tmp_path / "override"
        override.mkdir()
        (override / "config.json").write_text("override")
        assert find_cached_docker_config({"DOCKER_CONFIG": str(override)}) == (
            override / "config.json"
        )

    def test_falls_back_to_home(self, isolated_home: Path, tmp_path: Path) -> None:
        (isolated_home / ".docker").mkdir()
        home_config = isolated_home / ".docker" / "config.json"
        home_config.write_text("home")
        assert find_cached_docker_config({"DOCKER_CONFIG": str(tmp_path / "empty")}) == home_config

    def test_reads_os_environ(
        self, isolated_home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "config.json").write_text("x")
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path))
        assert find_cached_docker_config() == tmp_path / "config.json"


class TestGetDockerEnv:
    """Tests for get_docker_env function."""

    def test_copies_environ(self) -> None:
        env = get_docker_env()
        assert env == dict(os.environ)
        assert env is not os.environ

    def test_overrides_do_not_leak(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DOCKER_CONFIG", raising=False)
        env = get_docker_env({"DOCKER_CONFIG": "/tmp/x"})
        assert env["DOCKER_CONFIG"] == "/tmp/x"
        assert "DOCKER_CONFIG" not in os.environ
