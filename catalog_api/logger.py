"""
Logging configuration for the catalog service.

One package logger, configured from LOG_LEVEL, writing to stdout.
"""
import logging
import sys

from . import config

logger = logging.getLogger("catalog_api")
logger.setLevel(config.LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(console_handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """Return the package logger, or a child of it when name is given."""
    if name:
        return logging.getLogger(f"catalog_api.{name}")
    return logger
