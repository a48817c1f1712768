"""Core utilities for Azure Network Designer"""

from .renderer import DisplayRenderer
from .logging import setup_logging, get_logger, logger

__all__ = [
    "DisplayRenderer",
    "setup_logging",
    "get_logger",
    "logger",
]
