from __future__ import annotations

import logging
import sys

LOGGER_NAME = "landbsync"
DEFAULT_LEVEL = "info"

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def level_from_string(name: str) -> int | None:
    return _LEVELS.get(name.strip().lower())


def configure_logging(level_name: str = DEFAULT_LEVEL) -> logging.Logger:
    """Configure the ``landbsync`` logger once and return it.

    Unknown level names fall back to info with a warning, so a typo in the
    environment never stops the webhook from starting.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    level = level_from_string(level_name)
    if level is None:
        logger.setLevel(logging.INFO)
        logger.warning("Invalid log level '%s', using default '%s'", level_name, DEFAULT_LEVEL)
    else:
        logger.setLevel(level)
    return logger


def child_logger(parent: logging.Logger | None, name: str) -> logging.Logger:
    if parent is None:
        parent = logging.getLogger(LOGGER_NAME)
    return parent.getChild(name)
