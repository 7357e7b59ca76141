"""Image build orchestration.

A build runs as one shell script inside an ephemeral Docker config:

    export DOCKER_CONFIG=<tmpdir>
    docker login ... <registry>        (one per registry)
    cd <source>
    docker pull <cache> || true        (only with cache_from)
    docker build -f <dockerfile> -t <tag> . [--cache-from <cache>]

The script stops at the first failing command, so a rejected login aborts the
build; only the cache pull may fail. The ephemeral config is removed on every
exit path.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from .commands import BuildSpec, build_commands, build_login_command, escape_credential
from .config import Config, load_config
from .executor import ShellExecutor
from .logging import get_logger, redacted_secrets
from .registry import EnvRegistrySource
from .version import shared_probe
from .workspace import acquire_workspace

if TYPE_CHECKING:
    from .registry import RegistryCredential, RegistrySource
    from .version import DockerVersionProbe
    from .workspace import ScopedWorkspace

logger = get_logger(__name__)


class BuildPhase(str, Enum):
    """Phases of one build_image call."""

    IDLE = "idle"
    STAGING_CREDENTIALS = "staging_credentials"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ImageBuilder:
    """Builds Docker images with isolated registry logins.

    Args:
        registries: Credential source (defaults to $DOCKER_REGISTRIES + config).
        executor: Runs the command script (defaults to ShellExecutor).
        version_probe: Docker version detector (defaults to the process-wide probe
            for config.docker_version_timeout).
        config: Settings (defaults to load_config()).
    """

    def __init__(
        self,
        registries: RegistrySource | None = None,
        executor: ShellExecutor | None = None,
        version_probe: DockerVersionProbe | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.registries = (
            registries if registries is not None else EnvRegistrySource(self.config.registries)
        )
        self.executor = (
            executor
            if executor is not None
            else ShellExecutor(timeout=self.config.build_timeout, verbose=self.config.verbose)
        )
        self.version_probe = (
            version_probe
            if version_probe is not None
            else shared_probe(self.config.docker_version_timeout)
        )

    def login_commands(
        self,
        workspace: ScopedWorkspace,
        credentials: list[RegistryCredential] | None = None,
    ) -> list[str]:
        """Export the workspace as DOCKER_CONFIG, then log in to every registry."""
        if credentials is None:
            credentials = self.registries.all()
        commands = [workspace.export_command]
        if not credentials:
            return commands

        version = self.version_probe.detect()
        logger.debug("Logging in to %d registries with docker %s", len(credentials), version)
        commands.extend(
            build_login_command(credential, version, email=self.config.login_email)
            for credential in credentials
        )
        return commands

    def build_image(
        self,
        source_directory: str | Path,
        output: TextIO,
        *,
        dockerfile: str = "Dockerfile",
        tag: str,
        cache_from: str | None = None,
    ) -> bool:
        """Log in to all registries and build source_directory.

        Args:
            source_directory: Build context; commands run from here.
            output: Stream receiving commands and Docker output as it arrives.
            dockerfile: Dockerfile path relative to source_directory.
            tag: Image tag.
            cache_from: Image whose layers should be reused, if any.

        Returns:
            True if every login and the build succeeded.

        Raises:
            WorkspaceError: If the ephemeral Docker config cannot be created.
            CredentialError: If a configured registry URL is invalid.
        """
        spec = BuildSpec(
            source_directory=source_directory,
            dockerfile=dockerfile,
            tag=tag,
            cache_from=cache_from,
        )
        phase = BuildPhase.IDLE

        workspace = acquire_workspace()
        try:
            phase = self._enter(BuildPhase.STAGING_CREDENTIALS, spec)
            credentials = self.registries.all()
            secrets = _secrets(credentials)
            with redacted_secrets(secrets):
                commands = self.login_commands(workspace, credentials)
                commands.extend(build_commands(spec))

                phase = self._enter(BuildPhase.EXECUTING, spec)
                success = self.executor.execute(
                    commands,
                    output,
                    env=workspace.env_override,
                    secrets=secrets,
                )

            phase = self._enter(BuildPhase.SUCCEEDED if success else BuildPhase.FAILED, spec)
            return success
        finally:
            if not workspace.release():
                output.write(
                    f"Warning: could not remove temporary docker config {workspace.path}\n"
                )
            if phase not in (BuildPhase.SUCCEEDED, BuildPhase.FAILED):
                logger.error("Build of %s aborted during %s", spec.tag, phase.value)

    @staticmethod
    def _enter(phase: BuildPhase, spec: BuildSpec) -> BuildPhase:
        logger.debug("Build %s: %s", spec.tag, phase.value)
        return phase


def _secrets(credentials: list[RegistryCredential]) -> list[str]:
    """Passwords in both raw and escaped form, as they appear in output and commands."""
    secrets = []
    for credential in credentials:
        secrets.append(credential.password)
        secrets.append(escape_credential(credential.password))
    return secrets


def build_image(
    source_directory: str | Path,
    output: TextIO,
    *,
    dockerfile: str = "Dockerfile",
    tag: str,
    cache_from: str | None = None,
) -> bool:
    """Build with a default ImageBuilder (see ImageBuilder.build_image)."""
    return ImageBuilder().build_image(
        source_directory,
        output,
        dockerfile=dockerfile,
        tag=tag,
        cache_from=cache_from,
    )
