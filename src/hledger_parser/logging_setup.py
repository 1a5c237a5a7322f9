"""Logging for the parser.

Every module logs through ``get_logger(__name__)``, so all records land
under the ``hledger_parser`` logger. Parsing a journal never prints
anything on its own; a program embedding the parser opts in with
``configure_logging()``. Recovered parse errors are reported through
diagnostics, and the log only repeats them at DEBUG.
"""

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "hledger_parser"
_LEVEL_ENV_VAR = "HLEDGER_PARSER_LOG_LEVEL"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Turn ``20``, ``"20"`` or ``"info"`` into a logging level.

    With no level given, ``$HLEDGER_PARSER_LOG_LEVEL`` is read instead.
    Anything unrecognised falls back to INFO.
    """
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    if level is None:
        env_val = os.getenv(_LEVEL_ENV_VAR)
        if env_val:
            return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send parser logs to ``stream``.

    Use ``level="DEBUG"`` to see every journal item as it is parsed, and
    INFO for one summary line per file. Only the first call has an effect,
    so a library and the application embedding it can both call this.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or "%(levelname)s %(name)s: %(message)s"))
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a parser module; silent until ``configure_logging()`` runs."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
