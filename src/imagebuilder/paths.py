"""Docker config location utilities.

Docker keeps registry credentials in ``config.json`` inside the directory named
by ``$DOCKER_CONFIG``, falling back to ``~/.docker``. Builds never write to
that shared directory; these helpers only locate it and build the environment
for subprocesses that should use an isolated copy instead.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .constants import DOCKER_CONFIG_ENV, DOCKER_CONFIG_FILE, DOCKER_HOME_CONFIG_DIR


def get_default_docker_config_dir() -> Path:
    """Get the Docker config directory under the user's home."""
    return Path.home() / DOCKER_HOME_CONFIG_DIR


def docker_config_candidates(environ: Mapping[str, str] | None = None) -> list[Path]:
    """List the config.json locations to consult, in priority order.

    Args:
        environ: Environment to read the override from (defaults to os.environ).

    Returns:
        ``$DOCKER_CONFIG/config.json`` (when set) followed by ``~/.docker/config.json``.
    """
    environ = os.environ if environ is None else environ
    candidates = []
    override = environ.get(DOCKER_CONFIG_ENV)
    if override:
        candidates.append(Path(override).expanduser() / DOCKER_CONFIG_FILE)
    candidates.append(get_default_docker_config_dir() / DOCKER_CONFIG_FILE)
    return candidates


def find_cached_docker_config(environ: Mapping[str, str] | None = None) -> Path | None:
    """Find the first existing Docker config.json.

    Returns:
        Path to the cached config file, or None if neither location has one.
    """
    for candidate in docker_config_candidates(environ):
        if candidate.is_file():
            return candidate
    return None


def get_docker_env(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build the environment for a Docker subprocess.

    Args:
        overrides: Variables layered over a copy of os.environ.

    Returns:
        New environment dict; os.environ itself is never modified.
    """
    env = os.environ.copy()
    if overrides:
        env.update(overrides)
    return env
