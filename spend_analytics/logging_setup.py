"""Where the package's log records go, and at what level.

Everything under ``spend_analytics`` logs through child loggers of the
``"spend_analytics"`` logger and never installs handlers itself. Output is
switched on by whoever owns the process: the CLI calls
:func:`configure_logging` at startup, a host application may do the same or
install its own handlers. Until then records are dropped quietly.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "spend_analytics"
_LEVEL_ENV_VAR = "SPEND_ANALYTICS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        text = level.strip().upper()
        if text.isdigit():
            return int(text)
        numeric = logging.getLevelNamesMapping().get(text)
        if numeric is not None:
            return numeric
        raise ValueError(f"unknown log level: {level!r}")
    env_val = os.getenv(_LEVEL_ENV_VAR)
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Send package log records to a text stream.

    ``level`` may be a number or a name such as ``"debug"``; when omitted the
    ``SPEND_ANALYTICS_LOG_LEVEL`` variable is consulted and INFO is the last
    resort. ``fmt`` replaces the default
    ``"%(asctime)s %(name)s %(levelname)s %(message)s"`` line layout.
    ``stream`` defaults to whatever ``sys.stderr`` is at call time.

    Only the first call takes effect; pass ``force=True`` to swap an existing
    setup for a new one.
    """

    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def reset_logging() -> None:
    """Undo :func:`configure_logging` so the next call starts from scratch."""

    global _CONFIGURED
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Module logger; records stay silent until :func:`configure_logging` runs."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging"]
