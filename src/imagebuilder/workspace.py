"""Ephemeral Docker config directories.

Each build logs in against its own temporary DOCKER_CONFIG so registry
passwords never land in the shared ~/.docker/config.json and concurrent builds
never see each other's logins. An existing config.json is copied in first so
settings such as credential helpers and proxies keep working.

Usage:
    with scoped_workspace() as workspace:
        run(["export DOCKER_CONFIG=...", ...], env=workspace.env_override)

The override is handed to subprocesses explicitly; os.environ is never touched.
"""

from __future__ import annotations

import os
import shlex
import shutil
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from .constants import DOCKER_CONFIG_ENV, DOCKER_CONFIG_FILE, WORKSPACE_PREFIX
from .errors import WorkspaceError
from .logging import get_logger
from .paths import find_cached_docker_config

logger = get_logger(__name__)


class ScopedWorkspace:
    """Handle to one ephemeral Docker config directory.

    Must be released exactly once; release() is idempotent.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.released = False

    @property
    def env_override(self) -> dict[str, str]:
        return {DOCKER_CONFIG_ENV: str(self.path)}

    @property
    def export_command(self) -> str:
        return f"export {DOCKER_CONFIG_ENV}={shlex.quote(str(self.path))}"

    def release(self) -> bool:
        """Remove the directory and everything Docker wrote into it.

        Returns:
            True if the directory is gone, False if removal failed. A failure
            is logged rather than raised so it cannot hide a build result.
        """
        if self.released:
            return True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to remove docker config workspace %s: %s", self.path, e)
            return False
        self.released = True
        logger.debug("Removed docker config workspace %s", self.path)
        return True

    def __repr__(self) -> str:
        return f"ScopedWorkspace(path={str(self.path)!r}, released={self.released})"


def acquire_workspace(environ: Mapping[str, str] | None = None) -> ScopedWorkspace:
    """Create a workspace seeded with the user's cached Docker config.

    Args:
        environ: Environment used to find $DOCKER_CONFIG (defaults to os.environ).

    Raises:
        WorkspaceError: If the directory cannot be created or seeded.
    """
    try:
        path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX))
    except OSError as e:
        raise WorkspaceError(f"Could not create docker config workspace: {e}") from e

    workspace = ScopedWorkspace(path)
    cached = find_cached_docker_config(environ)
    if cached is None:
        logger.debug("No cached docker config found, starting empty")
        return workspace

    target = path / DOCKER_CONFIG_FILE
    try:
        shutil.copyfile(cached, target)
        os.chmod(target, 0o600)
    except OSError as e:
        workspace.release()
        raise WorkspaceError(f"Could not copy {cached} into docker config workspace: {e}") from e

    logger.debug("Seeded docker config workspace from %s", cached)
    return workspace


@contextmanager
def scoped_workspace(environ: Mapping[str, str] | None = None) -> Iterator[ScopedWorkspace]:
    """Acquire a workspace for the duration of a with block."""
    workspace = acquire_workspace(environ)
    try:
        yield workspace
    finally:
        workspace.release()
