"""Docker version detection.

``docker login --email`` was removed in Docker 17, so the login command depends
on the installed client's major version. Detection is bounded in time and
cached on success only, so a slow or missing Docker yields UNKNOWN_VERSION now
and can still be detected on a later build.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .constants import DOCKER_VERSION_TIMEOUT, EMAIL_FLAG_MAX_MAJOR
from .docker import safe_docker_run
from .errors import DockerError
from .logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")


@dataclass(frozen=True)
class DockerVersion:
    """Installed Docker client version (major only is significant)."""

    major: int | None = None
    raw: str = ""

    @property
    def known(self) -> bool:
        return self.major is not None

    @property
    def needs_email_flag(self) -> bool:
        """Whether `docker login` should be given --email.

        Unknown versions are treated as old ones.
        """
        return self.major is None or self.major < EMAIL_FLAG_MAX_MAJOR

    def __str__(self) -> str:
        return self.raw or "unknown"


UNKNOWN_VERSION = DockerVersion()


def parse_docker_version(output: str) -> DockerVersion:
    """Parse the first semantic version found in ``docker -v`` output.

    Examples:
        >>> parse_docker_version("Docker version 17.03.1-ce, build c6d412e").major
        17
        >>> parse_docker_version("").known
        False
    """
    match = _VERSION_RE.search(output)
    if not match:
        return UNKNOWN_VERSION
    return DockerVersion(major=int(match.group(1)), raw=match.group(0))


def read_docker_version(timeout: float = DOCKER_VERSION_TIMEOUT) -> str:
    """Return the raw ``docker -v`` output.

    Raises:
        DockerNotFoundError: If docker is not installed.
        DockerTimeoutError: If docker does not answer within timeout.
        DockerError: If docker cannot be executed or exits non-zero.
    """
    result = safe_docker_run(["docker", "-v"], timeout=timeout)
    if result.returncode != 0:
        raise DockerError(f"docker -v exited with {result.returncode}")
    return result.stdout


@dataclass
class DockerVersionProbe:
    """Thread-safe, success-only cache around a Docker version reader.

    Usage:
        probe = DockerVersionProbe()
        probe.detect()      # runs `docker -v` once
        probe.detect()      # cached
        probe.invalidate()  # next detect() probes again
    """

    reader: Callable[[float], str] = read_docker_version
    timeout: float = DOCKER_VERSION_TIMEOUT
    _cached: DockerVersion | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def detect(self) -> DockerVersion:
        """Return the cached version, probing Docker if nothing is cached yet."""
        with self._lock:
            if self._cached is not None:
                return self._cached

            try:
                output = self.reader(self.timeout)
            except (DockerError, OSError) as e:
                logger.info("Docker version check failed, assuming old docker: %s", e)
                return UNKNOWN_VERSION

            version = parse_docker_version(output)
            if not version.known:
                logger.info("Could not parse docker version from %r", output.strip())
                return UNKNOWN_VERSION

            logger.debug("Detected docker version %s", version)
            self._cached = version
            return version

    def invalidate(self) -> None:
        """Forget the cached version."""
        with self._lock:
            self._cached = None

    @property
    def cached(self) -> DockerVersion | None:
        with self._lock:
            return self._cached


# Process-wide probes, one per timeout, shared by builders not handed their own
_shared_probes: dict[float, DockerVersionProbe] = {}
_shared_probes_lock = threading.Lock()


def shared_probe(timeout: float = DOCKER_VERSION_TIMEOUT) -> DockerVersionProbe:
    """Return the process-wide probe for this timeout."""
    with _shared_probes_lock:
        probe = _shared_probes.get(timeout)
        if probe is None:
            probe = _shared_probes[timeout] = DockerVersionProbe(timeout=timeout)
        return probe
