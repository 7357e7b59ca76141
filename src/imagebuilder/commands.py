"""Shell command lines for registry login and image builds.

Every command produced here is a single line for a POSIX shell script; values
are escaped exactly once when they are embedded.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import LOGIN_PLACEHOLDER_EMAIL

if TYPE_CHECKING:
    from .registry import RegistryCredential
    from .version import DockerVersion

# Characters a POSIX shell would interpret. "+" is included because registry
# passwords and hosts commonly contain it.
SHELL_SPECIAL_CHARS = frozenset(" \t\\'\"`$!&|;<>()*?[]{}#~=%^+")


def escape_credential(value: str) -> str:
    """Backslash-escape shell-significant characters.

    Examples:
        >>> escape_credential("fo+o")
        'fo\\\\+o'
        >>> escape_credential("plain.value")
        'plain.value'
    """
    return "".join(f"\\{char}" if char in SHELL_SPECIAL_CHARS else char for char in value)


def build_login_command(
    credential: RegistryCredential,
    version: DockerVersion,
    *,
    email: str = LOGIN_PLACEHOLDER_EMAIL,
) -> str:
    """Build the ``docker login`` line for one registry.

    Docker before 17 (and any version we could not detect) gets an --email
    flag so the login stays non-interactive.
    """
    parts = [
        "docker login",
        f"--username {escape_credential(credential.username)}",
        f"--password {escape_credential(credential.password)}",
    ]
    if version.needs_email_flag:
        parts.append(f"--email {escape_credential(credential.email or email)}")
    parts.append(escape_credential(credential.host))
    return " ".join(parts)


@dataclass(frozen=True)
class BuildSpec:
    """What to build and how to tag it."""

    source_directory: str | Path
    dockerfile: str = "Dockerfile"
    tag: str = "latest"
    cache_from: str | None = None


def build_commands(spec: BuildSpec) -> list[str]:
    """Build the cd, optional cache pull, and docker build lines.

    A missing cache image is not an error: the pull is allowed to fail and the
    build then simply runs without reusing layers.
    """
    commands = [f"cd {shlex.quote(str(spec.source_directory))}"]
    build = f"docker build -f {shlex.quote(str(spec.dockerfile))} -t {shlex.quote(spec.tag)} ."
    if spec.cache_from:
        cache_from = shlex.quote(spec.cache_from)
        commands.append(f"docker pull {cache_from} || true")
        build += f" --cache-from {cache_from}"
    commands.append(build)
    return commands
