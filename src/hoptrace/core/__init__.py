"""Core utilities for hoptrace"""

from .logging import setup_logging, get_logger, logger
from .config import load_options, set_default, reset_defaults, config_file
from .renderer import ReportRenderer

__all__ = [
    "setup_logging",
    "get_logger",
    "logger",
    "load_options",
    "set_default",
    "reset_defaults",
    "config_file",
    "ReportRenderer",
]
