"""Stdlib logging setup for the docfold command line.

Library code only creates module loggers; handlers are installed here, by
the CLI, so embedding applications keep control of their own logging.
"""
from __future__ import annotations

import logging
import sys
from typing import IO, Optional

DEFAULT_FORMAT = "docfold: %(levelname)s: %(message)s"

# Above CRITICAL: nothing gets through.
QUIET = logging.CRITICAL + 10

_LEVEL_ALIASES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_DOCFOLD_HANDLER: logging.Handler | None = None


def level_from_name(name: str) -> int:
    """Map a level name (``warn``, ``fatal``, ...) to a stdlib level number."""
    try:
        return _LEVEL_ALIASES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"invalid log level: {name}") from None


def configure_logging(
    *,
    level: int | str = logging.WARNING,
    stream: Optional[IO[str]] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Install a single stream handler on the ``docfold`` logger.

    Idempotent per-process: a handler installed by a previous call is
    replaced, so the stream can change between invocations (tests swap
    ``sys.stderr``).
    """
    global _DOCFOLD_HANDLER

    if isinstance(level, str):
        level = level_from_name(level)

    logger = logging.getLogger("docfold")
    if _DOCFOLD_HANDLER is not None:
        logger.removeHandler(_DOCFOLD_HANDLER)
        _DOCFOLD_HANDLER.close()
        _DOCFOLD_HANDLER = None

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    # Keep CLI diagnostics off the root logger's handlers.
    logger.propagate = False

    _DOCFOLD_HANDLER = handler
    return logger


def reset_logging_for_tests() -> None:
    """Test-only: remove the docfold handler and restore propagation."""
    global _DOCFOLD_HANDLER
    logger = logging.getLogger("docfold")
    if _DOCFOLD_HANDLER is not None:
        logger.removeHandler(_DOCFOLD_HANDLER)
        _DOCFOLD_HANDLER.close()
        _DOCFOLD_HANDLER = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = ["configure_logging", "reset_logging_for_tests", "level_from_name", "QUIET", "DEFAULT_FORMAT"]
