"""Run a command sequence as one shell script, streaming its output.

All commands share one ``sh`` process under ``set -e`` so exported variables
(DOCKER_CONFIG) and ``cd`` carry over, and the first failing command stops
the script. stderr is merged into stdout and forwarded line by line.
"""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess
import threading
from typing import TYPE_CHECKING, TextIO

from .constants import COMMAND_ECHO_PREFIX, DOCKER_BUILD_TIMEOUT
from .logging import get_logger, mask_password_flags, redact
from .paths import get_docker_env

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

logger = get_logger(__name__)

_POSIX = os.name == "posix"


def _kill_process_tree(process: subprocess.Popen[str]) -> None:
    """Kill the shell and everything it started (docker keeps the pipe open otherwise)."""
    if _POSIX:
        with contextlib.suppress(ProcessLookupError):
            os.killpg(process.pid, signal.SIGKILL)
    else:
        process.kill()


class ShellExecutor:
    """Executes command sequences through ``sh -c``.

    Args:
        timeout: Seconds before the whole script is killed (None for no limit).
        verbose: Echo each command (with secrets filtered) before the output.
        shell: Shell executable.
    """

    def __init__(
        self,
        timeout: float | None = DOCKER_BUILD_TIMEOUT,
        verbose: bool = True,
        shell: str = "sh",
    ) -> None:
        self.timeout = timeout
        self.verbose = verbose
        self.shell = shell

    @staticmethod
    def script(commands: Sequence[str]) -> str:
        return "\n".join(["set -e", *commands])

    def execute(
        self,
        commands: Sequence[str],
        output: TextIO,
        *,
        env: Mapping[str, str] | None = None,
        secrets: Iterable[str] = (),
    ) -> bool:
        """Run commands in order.

        Args:
            commands: Shell command lines.
            output: Stream receiving echoed commands and process output.
            env: Variables layered over os.environ for the script.
            secrets: Strings to hide from echoed commands and output (see redact).
                --password values are always hidden in echoed commands.

        Returns:
            True if every command exited zero, False otherwise.
        """
        secrets = list(secrets)
        if self.verbose:
            for command in commands:
                echoed = redact(mask_password_flags(command), secrets)
                output.write(f"{COMMAND_ECHO_PREFIX}{echoed}\n")
            output.flush()

        logger.debug("Executing %d commands via %s", len(commands), self.shell)
        try:
            process = subprocess.Popen(
                [self.shell, "-c", self.script(commands)],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                env=get_docker_env(env),
                start_new_session=_POSIX,
            )
        except OSError as e:
            logger.error("Could not start %s: %s", self.shell, e)
            output.write(f"Could not start {self.shell}: {e}\n")
            return False

        timed_out = threading.Event()

        def _kill() -> None:
            if process.poll() is not None:
                return
            timed_out.set()
            _kill_process_tree(process)

        timer = None
        if self.timeout is not None:
            timer = threading.Timer(self.timeout, _kill)
            timer.daemon = True
            timer.start()

        try:
            assert process.stdout is not None
            for line in process.stdout:
                output.write(redact(line, secrets))
                output.flush()
            returncode = process.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if process.poll() is None:
                _kill_process_tree(process)
                process.wait()

        if timed_out.is_set():
            logger.warning("Command sequence timed out after %ss", self.timeout)
            output.write(f"Timed out after {self.timeout}s\n")
            return False

        logger.debug("Command sequence finished: exit=%d", returncode)
        return returncode == 0
