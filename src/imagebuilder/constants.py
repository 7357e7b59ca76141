"""Constants module for imagebuilder.

All timeout values and shared constants are defined here (SSOT).
"""

from __future__ import annotations

# === Docker Timeouts (seconds) ===
DOCKER_COMMAND_TIMEOUT = 30  # Quick docker commands (info, inspect, ps)
DOCKER_VERSION_TIMEOUT = 2.0  # `docker -v` probe; slow daemons fall back to unknown
DOCKER_BUILD_TIMEOUT = 3600  # Whole login + pull + build script

# === Docker login ===
EMAIL_FLAG_MAX_MAJOR = 17  # docker >= 17 rejects `docker login --email`
LOGIN_PLACEHOLDER_EMAIL = "no@example.com"

# === Environment variables ===
DOCKER_CONFIG_ENV = "DOCKER_CONFIG"  # Docker's credential store location override
DOCKER_REGISTRIES_ENV = "DOCKER_REGISTRIES"  # Comma-separated registry URLs
DEBUG_ENV = "IMAGEBUILDER_DEBUG"

# === Paths ===
DOCKER_HOME_CONFIG_DIR = ".docker"  # Relative to the user's home directory
DOCKER_CONFIG_FILE = "config.json"
WORKSPACE_PREFIX = "imagebuilder-docker-config-"

# === Output ===
FILTERED = "[FILTERED]"  # Replaces secrets in echoed commands, output and logs
MIN_SECRET_LENGTH = 4  # Shorter secrets are only masked after --password
COMMAND_ECHO_PREFIX = "» "
