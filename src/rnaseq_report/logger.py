"""
Logging configuration for rnaseq_report.

Every module obtains its logger through :func:`get_logger`, so the whole
pipeline writes with one format to stdout and can be switched to DEBUG in one
place (see :func:`set_level`).
"""

import logging
import sys

PACKAGE_LOGGER = "rnaseq_report"
LOG_FORMAT = "[%(asctime)s] %(levelname)s - [%(name)s] - %(message)s"


def setup_logger(name: str = PACKAGE_LOGGER, level: int = logging.INFO) -> logging.Logger:
    """
    Configure a logger with consistent formatting.

    Args:
        name: Name of the logger.
        level: Logging level (default: INFO).

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name)

    # Only configure if it hasn't been configured yet
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger below the package logger.

    The package logger carries the handler; module loggers propagate to it.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        logging.Logger: Logger instance.
    """
    setup_logger(PACKAGE_LOGGER)
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_level(level: int) -> None:
    """Set the level of the package logger (and thereby all module loggers)."""
    setup_logger(PACKAGE_LOGGER).setLevel(level)
