"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

from catalog.core.config import Settings

_HANDLER_NAME = "catalog-console"


def configure_logging(settings: Settings) -> None:
    """Attach a single console handler to the root logger.

    Safe to call more than once (tests build several apps per process); the
    handler is only installed the first time, the level is always refreshed.
    """
    level = logging.DEBUG if settings.debug else settings.logging.level.upper()
    root_logger = logging.getLogger()
    if not any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(settings.logging.format))
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)


__all__ = ["configure_logging"]
