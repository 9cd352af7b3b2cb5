"""Logging setup."""

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def configure_logging(level: str = "INFO") -> None:
    """Route kvwatch logs to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    logger.enable("kvwatch")
