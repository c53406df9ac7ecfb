from __future__ import annotations

import logging

from pluggability.core.config import settings

LOGGER_NAME = 'pluggability'
LOG_FORMAT = '[%(levelname)s] %(name)s: %(message)s'


def _ensure_stream_handler(logger: logging.Logger) -> None:
    handler_exists = any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
    if handler_exists:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def configure_logging(level_name: str | None = None) -> logging.Logger:
    """Attach a console handler to the ``pluggability`` logger and set its level.

    Safe to call repeatedly; only one stream handler is ever installed.
    """
    name = (level_name or settings.log_level or 'WARNING').upper()
    lvl = getattr(logging, name, None)
    if not isinstance(lvl, int):
        lvl = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(lvl)
    _ensure_stream_handler(logger)
    return logger
