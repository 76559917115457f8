"""Utility functions for copilot-connector."""

import os
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(
    log_level: str = "INFO",
    log_to_stdout: bool = False,
) -> None:
    """Configure loguru sinks.

    By default logs go to stderr so they never mix with CLI output on stdout.
    The API server passes log_to_stdout=True so container logs are collected.

    Args:
        log_level: Minimum level to emit.
        log_to_stdout: Send logs to stdout instead of stderr.
    """
    logger.remove()

    # Tests configure their own capture
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        logger.add(sys.stderr, level=log_level, format=LOG_FORMAT, backtrace=True)
        return

    stream = sys.stdout if log_to_stdout else sys.stderr
    logger.add(stream, level=log_level, format=LOG_FORMAT, colorize=None)

    logger.debug(f"Logging configured: level={log_level}, stdout={log_to_stdout}")
