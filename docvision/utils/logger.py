"""Centralized logging setup for docvision.

Every module logs through a named logger obtained from ``get_logger``;
``setup_logging`` installs a single stdout handler on the root logger.
"""

import logging
import sys

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_QUIET_LOGGERS = ("httpx", "httpcore", "PIL")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Calling it again once a handler is installed is a no-op. Chatty
    third-party loggers (HTTP client, Pillow) are capped at WARNING.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
