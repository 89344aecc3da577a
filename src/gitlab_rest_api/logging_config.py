"""Logging configuration for the GitLab REST client.

The package logs under ``gitlab_rest_api``.  ``setup_logging`` gives that
logger one stderr handler, so diagnostics never mix with command output on
stdout.  Unless the level is DEBUG, lines are kept short
(``WARNING: ...``) for the command line.  At DEBUG they carry a timestamp
and the logger name, and the request lines httpx logs itself are routed
through the same handler.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from gitlab_rest_api.config import Config

# Package logger name
LOGGER_NAME = "gitlab_rest_api"

# Name of the handler installed by setup_logging
HANDLER_NAME = "gitlab_rest_api.stderr"

DEBUG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Third-party loggers that share the package handler at DEBUG level
HTTP_LOGGERS = ("httpx",)


def _formatter(level: int) -> logging.Formatter:
    if level <= logging.DEBUG:
        return logging.Formatter(DEBUG_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(DEFAULT_FORMAT)


def _package_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    return None


def setup_logging(config: Config, stream: TextIO | None = None) -> logging.Handler:
    """Configure the package logger from the configured log level.

    Calling it again reuses the handler from the first call and only
    changes its level and format.

    Args:
        config: Configuration carrying the log_level setting
        stream: Where to write (stderr when omitted)

    Returns:
        The package handler
    """
    level = getattr(logging, config.log_level.value)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    handler = _package_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    handler.setLevel(level)
    handler.setFormatter(_formatter(level))

    for name in HTTP_LOGGERS:
        http_logger = logging.getLogger(name)
        if level <= logging.DEBUG:
            if handler not in http_logger.handlers:
                http_logger.addHandler(handler)
            http_logger.setLevel(logging.DEBUG)
        else:
            http_logger.removeHandler(handler)
            http_logger.setLevel(logging.NOTSET)

    logger.debug("Logging configured with level %s", config.log_level.value)
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package logger.

    Args:
        name: Logger name, typically __name__ of the calling module
    """
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)

    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Remove the package handler everywhere it was attached.

    The package logger propagates to the root logger again afterwards.
    """
    logger = logging.getLogger(LOGGER_NAME)
    handler = _package_handler(logger)
    if handler is not None:
        logger.removeHandler(handler)
        for name in HTTP_LOGGERS:
            http_logger = logging.getLogger(name)
            http_logger.removeHandler(handler)
            http_logger.setLevel(logging.NOTSET)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
