"""Logging configuration for hoptrace."""

import logging
import sys
from typing import Optional

# Package logger, every module logs through a child of it
logger = logging.getLogger("hoptrace")

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _console_level(debug: bool, quiet: bool) -> int:
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def setup_logging(
    debug: bool = False, log_file: Optional[str] = None, quiet: bool = False
) -> logging.Logger:
    """Configure logging for a trace run.

    Args:
        debug: Enable debug level logging (wins over ``quiet``)
        log_file: Optional file path that receives every record
        quiet: Only report errors on stderr, used for graph-only runs

    Returns:
        Configured package logger
    """
    logger.setLevel(logging.DEBUG if debug or log_file else logging.INFO)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_console_level(debug, quiet))
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger, e.g. ``get_logger("engine")`` -> ``hoptrace.engine``."""
    return logger.getChild(name)
