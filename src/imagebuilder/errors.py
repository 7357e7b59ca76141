"""Exceptions raised by imagebuilder.

Everything derives from ImageBuilderError. The CLI catches it, prints the
message in red and exits with status 1. A failing ``docker build`` is not an
exception: build_image reports it by returning False.

Leaf module: imports nothing from imagebuilder.
"""

from __future__ import annotations


class ImageBuilderError(Exception):
    """Base exception for all imagebuilder errors."""


class ConfigError(ImageBuilderError):
    """The config file could not be written."""


class CredentialError(ImageBuilderError):
    """A registry URL or credential cannot be used.

    Raised for URLs without a host or username, invalid ports, and values
    containing line breaks that cannot be placed on a shell line.
    """


class WorkspaceError(ImageBuilderError):
    """The ephemeral Docker config directory could not be created or seeded."""


class DockerError(ImageBuilderError):
    """A docker invocation could not be executed or exited non-zero.

    The version probe treats any DockerError as "version unknown".
    """


class DockerNotFoundError(DockerError):
    """docker is not on PATH."""


class DockerTimeoutError(DockerError):
    """docker did not finish within its timeout."""
