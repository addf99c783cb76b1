"""Logging configuration for the ``plainledger`` package.

- ``configure_logging(...)`` attaches one ``StreamHandler`` to the package
  logger (``"plainledger"``). Entry points call it once at startup.
- ``get_logger(name)`` returns a module logger and makes sure the package
  logger has at least a ``NullHandler`` while nothing has been configured.

Library modules never attach handlers of their own.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "plainledger"
LEVEL_ENV_VAR = "PLAINLEDGER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def parse_level(level: int | str | None) -> int:
    """Level from an int, a name or numeric string, else the environment, else WARNING."""
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelNamesMapping().get(name)
        if numeric is not None:
            return numeric
    env_val = os.getenv(LEVEL_ENV_VAR)
    if env_val and env_val != level:
        return parse_level(env_val)
    return logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package logger once; later calls are no-ops.

    level defaults to ``PLAINLEDGER_LOG_LEVEL`` when set, otherwise WARNING.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a plainledger module; silent until configure_logging runs."""
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
