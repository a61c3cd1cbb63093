"""
Console logging setup for FilterStack.
"""

from __future__ import annotations

import logging
import sys

import colorlog

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_HANDLER_NAME = "filterstack-console"


def setup_console_logging(level: str = "INFO", color: bool = True, stream=None) -> logging.Handler:
    """
    Attach a console handler to the ``filterstack`` logger.

    Args:
        level: Logging level name
        color: Whether to use colored output (only applied on a TTY)
        stream: Output stream, defaults to stderr

    Returns:
        The installed handler. Calling again replaces it rather than stacking.
    """
    stream = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)

    if color and getattr(stream, "isatty", lambda: False)():
        formatter: logging.Formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s - %(name)s - %(levelname)s%(reset)s - %(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    else:
        formatter = logging.Formatter(LOG_FORMAT)
    handler.setFormatter(formatter)

    logger = logging.getLogger("filterstack")
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
