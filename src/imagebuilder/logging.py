"""Logging for imagebuilder, with registry secrets filtered out.

User-facing progress goes to the build output stream or the rich console;
this module is for debug/monitoring logs under the ``imagebuilder`` namespace.

Usage:
    from imagebuilder.logging import get_logger
    logger = get_logger(__name__)

    with redacted_secrets(passwords):
        logger.debug("Login output: %s", line)   # passwords become [FILTERED]

Enable debug logs with ``imagebuilder --debug`` or ``IMAGEBUILDER_DEBUG=1``.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
from collections import Counter
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .constants import DEBUG_ENV, FILTERED, MIN_SECRET_LENGTH

ROOT_LOGGER_NAME = "imagebuilder"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# `--password <value>` where value may contain backslash-escaped characters
_PASSWORD_FLAG_RE = re.compile(r"(--password\s+)(?:\\.|[^\s\\])+")

_loggers: dict[str, logging.Logger] = {}
_initialized = False


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace secrets in free text with [FILTERED].

    Secrets shorter than MIN_SECRET_LENGTH are skipped: replacing a one-letter
    password would mangle every occurrence of that letter.
    """
    candidates = {s for s in secrets if len(s) >= MIN_SECRET_LENGTH}
    # Longest first so a secret containing another is fully hidden
    for secret in sorted(candidates, key=len, reverse=True):
        text = text.replace(secret, FILTERED)
    return text


def mask_password_flags(command: str) -> str:
    """Hide the value of every ``--password`` flag, whatever its length."""
    return _PASSWORD_FLAG_RE.sub(rf"\g<1>{FILTERED}", command)


class SecretFilter(logging.Filter):
    """Rewrites log records so registered secrets never reach a handler.

    Secrets are reference-counted so overlapping builds sharing a registry can
    register and release the same password independently.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Counter[str] = Counter()
        self._lock = threading.Lock()

    def add(self, secrets: Iterable[str]) -> None:
        with self._lock:
            self._secrets.update(s for s in secrets if s)

    def discard(self, secrets: Iterable[str]) -> None:
        with self._lock:
            self._secrets.subtract(s for s in secrets if s)
            self._secrets += Counter()  # drop non-positive counts

    @property
    def secrets(self) -> list[str]:
        with self._lock:
            return list(self._secrets)

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = self.secrets
        message = mask_password_flags(record.getMessage())
        if secrets:
            message = redact(message, secrets)
        record.msg = message
        record.args = None
        return True


secret_filter = SecretFilter()


@contextmanager
def redacted_secrets(secrets: Iterable[str]) -> Iterator[None]:
    """Filter secrets out of every imagebuilder log record inside the block."""
    secrets = list(secrets)
    secret_filter.add(secrets)
    try:
        yield
    finally:
        secret_filter.discard(secrets)


def _get_log_level() -> int:
    """Determine log level from environment."""
    if os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return logging.WARNING


def _init_logging() -> None:
    """Attach the stderr handler to the imagebuilder logger (once)."""
    global _initialized
    if _initialized:
        return

    level = _get_log_level()
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.addFilter(secret_filter)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(
                LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT,
                datefmt=DATE_FORMAT,
            )
        )
        root_logger.addHandler(handler)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a secret-filtered logger under the imagebuilder namespace.

    Args:
        name: Module name (typically __name__).
    """
    _init_logging()

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    if name not in _loggers:
        logger = logging.getLogger(name)
        # Logger filters only see records created on that logger, so every
        # module logger needs its own reference to the shared filter.
        logger.addFilter(secret_filter)
        _loggers[name] = logger

    return _loggers[name]


def set_debug(enabled: bool = True) -> None:
    """Switch the imagebuilder logger and its handlers between DEBUG and WARNING."""
    level = logging.DEBUG if enabled else logging.WARNING
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    fmt = LOG_FORMAT_DEBUG if enabled else LOG_FORMAT
    for handler in root_logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
