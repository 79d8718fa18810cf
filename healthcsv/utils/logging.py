"""
Logging setup for conversions.

Modules log through ``logging.getLogger(__name__)``; this module wires the
``healthcsv`` logger to the console and, optionally, to a per-conversion log
file.

Usage:
    from healthcsv.utils.logging import setup_logging, close_log_file

    setup_logging(debug=True, log_file="conversion.log")
    try:
        # ... conversion logic ...
    finally:
        close_log_file()
"""

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "healthcsv"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_file_handler: Optional[logging.FileHandler] = None


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Console output goes to stderr so that stdout stays free for callers
    piping data. Calling this again replaces the previous handlers.

    Args:
        debug: Log at DEBUG instead of INFO
        log_file: Also write log lines to this file

    Returns:
        The configured ``healthcsv`` logger
    """
    global _file_handler

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    close_log_file()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    if log_file:
        _file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        _file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_file_handler)

    logger.propagate = False
    return logger


def close_log_file() -> None:
    """Detach and close the conversion log file, if one is open."""
    global _file_handler

    if _file_handler is None:
        return
    handler, _file_handler = _file_handler, None
    logging.getLogger(ROOT_LOGGER_NAME).removeHandler(handler)
    handler.close()

