"""Configuration management for imagebuilder."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from rich.console import Console

from .constants import DOCKER_BUILD_TIMEOUT, DOCKER_VERSION_TIMEOUT, LOGIN_PLACEHOLDER_EMAIL
from .errors import ConfigError

console = Console(stderr=True)


@dataclass
class Config:
    """imagebuilder configuration model."""

    version: str = "1.0.0"

    # Registry URLs with embedded credentials, used in addition to $DOCKER_REGISTRIES
    registries: list[str] = field(default_factory=list)

    docker_version_timeout: float = DOCKER_VERSION_TIMEOUT
    build_timeout: int = DOCKER_BUILD_TIMEOUT

    # Sent as `docker login --email` to docker < 17
    login_email: str = LOGIN_PLACEHOLDER_EMAIL

    # Echo commands (secrets filtered) before their output
    verbose: bool = True


def get_config_dir() -> Path:
    """Get the imagebuilder configuration directory."""
    return Path.home() / ".imagebuilder"


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> Config:
    """Load configuration from file, or return defaults."""
    config_path = get_config_path()

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Config)}
            return Config(**{k: v for k, v in data.items() if k in known})
        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            console.print(f"[yellow]Warning: Failed to load config ({e}), using defaults[/yellow]")

    return Config()


def save_config(config: Config) -> None:
    """Save configuration to file.

    The file can hold registry passwords, so it is written owner-only.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_dir = get_config_dir()
    config_path = get_config_path()
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        config_path.write_text(
            json.dumps(asdict(config), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        config_path.chmod(0o600)
    except OSError as e:
        raise ConfigError(f"Could not write {config_path}: {e}") from e
