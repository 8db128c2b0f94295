"""
Logging configuration for notebook-lifecycle.

Lifecycle hooks log to stdout, which the provisioning service captures. The
detached create phase has its stdout redirected into the setup log, so the
same stream handler covers it. A create phase started by hand from a
terminal also gets a file handler on the setup log, keeping one log per
instance however setup was started.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Union, Optional


def get_log_level() -> int:
    """Get log level from environment variable, defaulting to INFO."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, log_level, logging.INFO)


def get_log_format(level: int) -> str:
    """Get appropriate log format based on level."""
    if level == logging.DEBUG:
        return "%(asctime)s | %(levelname)-5s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
    else:
        return "%(asctime)s | %(levelname)-5s | %(message)s"


def add_file_handler(path: Path, fmt: Optional[str] = None) -> logging.Handler:
    """
    Append log records to a file as well as the console.

    Args:
        path: Log file, created with its parent directory if missing
        fmt: Format string (auto-selected from the root level if None)

    Returns:
        The handler writing to ``path``; an existing one is reused
    """
    path = Path(path).resolve()
    root_logger = logging.getLogger()

    for handler in root_logger.handlers:
        if (
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == path
        ):
            return handler

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter(fmt or get_log_format(root_logger.getEffectiveLevel()))
    )
    root_logger.addHandler(handler)
    return handler


def setup_logging(
    level: Optional[Union[int, str]] = None,
    stream=sys.stdout,
    fmt: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> None:
    """
    Setup logging configuration for the lifecycle commands.

    Args:
        level: Log level (defaults to LOG_LEVEL env var or INFO)
        stream: Output stream for logs
        fmt: Custom format string (auto-selected based on level if None)
        log_file: Setup log to append to in addition to ``stream``
    """
    if level is None:
        level = get_log_level()
    elif isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if fmt is None:
        fmt = get_log_format(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.hasHandlers():
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root_logger.addHandler(handler)

    if log_file is not None:
        add_file_handler(log_file, fmt)

    # The status store lock logs every acquire at DEBUG
    if level == logging.DEBUG:
        logging.getLogger("filelock").setLevel(logging.INFO)
