"""Logging setup for the ledger package."""

from __future__ import annotations

import logging

from space_ledger.core.config import Settings

_PACKAGE_LOGGER = "space_ledger"
_HANDLER_NAME = "space_ledger-stream"


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call more than once: an existing handler is reused and only its
    level and format are refreshed.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    handler = next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)

    handler.setFormatter(logging.Formatter(settings.logging.format))
    logger.setLevel(settings.log_level)
    return logger


def reset_logging() -> None:
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
