"""
Daemon logging configuration helpers.

This module owns logging setup for the daemon process, including
version-tagged formatting and optional file handler wiring.
"""

from __future__ import annotations

import logging

from softdim import __version__

__all__ = [
    "logging_setup",
    "logFormatWithVersion_get",
    "logLevel_resolve",
]


def logging_setup(level: str, log_format: str, log_file: str | None) -> int:
    """
    Configure logging handlers and version-tagged format string.

    Args:
        level:
            Effective log level token (for example `INFO` or `DEBUG`).
        log_format:
            Base formatter string.
        log_file:
            Optional log file path.

    Returns:
        Numeric log level that was applied.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    numeric_level: int = logLevel_resolve(level)
    logging.basicConfig(
        level=numeric_level,
        format=logFormatWithVersion_get(log_format),
        handlers=handlers,
    )
    return numeric_level


def logLevel_resolve(level: str) -> int:
    """
    Map a level token to its numeric value.

    Raises:
        ValueError: If the token names no logging level.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")
    return numeric_level


def logFormatWithVersion_get(log_format: str) -> str:
    """
    Inject runtime version tag into timestamped log format.

    Args:
        log_format:
            Base formatter string.

    Returns:
        Formatter string with embedded version token.
    """
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")
