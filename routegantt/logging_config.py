"""
Logging setup for the routegantt CLI and for applications embedding it.

Records go to stderr so the printed timeline and exported paths on stdout
stay machine-readable.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

LOGGER_NAME = "routegantt"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str | Path] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the package logger.

    Args:
        level: threshold for the package logger and its handlers.
        log_file: append records to this file as well.
        stream: console stream; ``sys.stderr`` at call time when omitted.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
