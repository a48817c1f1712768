"""Logging for the normalization pipeline.

Each pipeline stage logs through a child of the package logger
(``azure_network_designer.aggregator``, ``.invariants``, ...). Records carry
a ``stage`` attribute so console and file output name the stage that emitted
them. Levels and the log file default to the values in ``RuntimeConfig``.
"""

import logging
import sys
from typing import Optional

from ..config import RuntimeConfig

PACKAGE = "azure_network_designer"

CONSOLE_FORMAT = "[%(levelname)s] %(stage)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(stage)s: %(message)s"

logger = logging.getLogger(PACKAGE)


class StageFilter(logging.Filter):
    """Tag records with the pipeline stage taken from the logger name."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(PACKAGE + "."):
            record.stage = record.name[len(PACKAGE) + 1 :]
        else:
            record.stage = "core"
        return True


def setup_logging(
    debug: Optional[bool] = None, log_file: Optional[str] = None
) -> logging.Logger:
    """Configure the package logger.

    Args:
        debug: Debug level logging; ``RuntimeConfig.is_debug()`` when None
        log_file: File for a full debug log; ``RuntimeConfig.get_log_file()``
            when None

    Returns:
        Configured package logger
    """
    if debug is None:
        debug = RuntimeConfig.is_debug()
    if log_file is None:
        log_file = RuntimeConfig.get_log_file()

    logger.setLevel(logging.DEBUG if debug or log_file else logging.INFO)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    # fixes are INFO; the console only shows warnings unless debugging
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.addFilter(StageFilter())
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(StageFilter())
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(stage: str) -> logging.Logger:
    """Logger for one pipeline stage, e.g. ``get_logger("wiring")``."""
    return logger.getChild(stage)
