"""
Logging setup.
"""

import sys

from loguru import logger

from concierge.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """Route all application logs to a single stderr sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL.upper(),
        format=settings.LOG_FORMAT,
        backtrace=settings.DEBUG,
        diagnose=settings.DEBUG,
    )
