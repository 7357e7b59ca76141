"""Docker subprocess helper for imagebuilder.

Quick, captured Docker invocations (such as `docker -v`) go through
safe_docker_run so missing binaries and timeouts surface as DockerError
subclasses. Long streaming scripts use imagebuilder.executor instead.
"""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

from .constants import DOCKER_COMMAND_TIMEOUT
from .errors import DockerError, DockerNotFoundError, DockerTimeoutError
from .logging import get_logger
from .paths import get_docker_env

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def safe_docker_run(
    cmd: Sequence[str],
    *,
    timeout: float = DOCKER_COMMAND_TIMEOUT,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a captured Docker command with consistent error handling.

    Args:
        cmd: Command to run (should start with 'docker').
        timeout: Command timeout in seconds.
        env: Extra environment variables layered over os.environ.

    Returns:
        CompletedProcess with decoded stdout/stderr (undecodable bytes replaced).

    Raises:
        DockerNotFoundError: If docker command is not found.
        DockerTimeoutError: If command times out.
        DockerError: If docker cannot be executed for any other reason.
    """
    cmd_str = " ".join(cmd[:4]) + ("..." if len(cmd) > 4 else "")
    logger.debug("Running Docker command: %s", cmd_str)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout,
            env=get_docker_env(env),
        )
        logger.debug("Docker command completed: exit=%d", result.returncode)
        return result
    except FileNotFoundError as e:
        logger.error("Docker not found in PATH: %s", cmd_str)
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
    except subprocess.TimeoutExpired as e:
        logger.warning("Docker command timed out after %ss: %s", timeout, cmd_str)
        raise DockerTimeoutError(
            f"Docker command timed out after {timeout}s. Command: {cmd_str}"
        ) from e
    except (OSError, subprocess.SubprocessError) as e:
        logger.error("Could not execute %s: %s", cmd_str, e)
        raise DockerError(f"Could not execute docker: {e}. Command: {cmd_str}") from e
