"""Loguru logging setup."""

import os
import sys

from loguru import logger

LOG_FORMAT = "<level>{time:YYYY-MM-DD HH:mm:ss} | {name}:{function}:{line} | {message}</level>"


def setup_logging(level: str | None = None) -> None:
    """Configure the loguru sink and level."""
    if level is None:
        level = os.environ.get("AUTOCOMMIT_LOG_LEVEL", "INFO")

    logger.remove()
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level.upper(),
        colorize=True,
        backtrace=True,
        diagnose=False,
    )
