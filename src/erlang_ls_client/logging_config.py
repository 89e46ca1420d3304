"""Logging configuration for the Erlang LS client."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

ROOT_LOGGER_NAME = "erlang_ls_client"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"


def setup_logging(
    level: str = "WARNING",
    stream: TextIO | None = None,
    format_string: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Set up the client's logger.

    Args:
        level: Level name; unknown names fall back to WARNING.
        stream: Output stream, stderr by default so stdout stays free for
            command results.
        format_string: Format string for log records.

    Returns:
        The configured root logger of the client.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(format_string))
    root_logger.addHandler(handler)

    root_logger.propagate = False
    root_logger.debug("Logging initialized - Level: %s", logging.getLevelName(numeric_level))
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a client component.

    Args:
        name: Component name, prefixed with ``erlang_ls_client.``.
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
