"""Centralized logging configuration for the image intake pipeline."""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER_NAME = "image-intake"

FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _build_formatter(format_type: str) -> logging.Formatter:
    format_type = os.getenv("LOG_FORMAT", format_type).lower()
    if format_type == "structured":
        return logging.Formatter(FORMATS["structured"], datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(FORMATS["simple"])


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure a pipeline logger writing to stdout.

    Args:
        name: Logger name
        level: Level name; falls back to ``LOG_LEVEL`` and then INFO
        format_type: "structured" or "simple"; ``LOG_FORMAT`` wins when set

    Returns:
        The configured logger. Calling again for the same name updates the
        level but never adds a second handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a pipeline logger.

    Child names ("validator", "exif", ...) are namespaced under
    "image-intake" so one LOG_LEVEL controls the whole pipeline.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return setup_logger(name)


def set_debug_logging(enabled: bool = True) -> None:
    """Switch every pipeline logger created so far to DEBUG (or back to INFO)."""
    level = logging.DEBUG if enabled else logging.INFO
    for logger_name in list(logging.root.manager.loggerDict):
        if logger_name == ROOT_LOGGER_NAME or logger_name.startswith(f"{ROOT_LOGGER_NAME}."):
            logging.getLogger(logger_name).setLevel(level)


logger = setup_logger()
