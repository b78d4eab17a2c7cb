"""Logging setup for the savings dashboard."""

from __future__ import annotations

import logging

ROOT_LOGGER = "savings_dashboard"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a stream handler to the package logger once.

    Streamlit re-executes page scripts on every interaction, so repeated
    calls only adjust the level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if not any(getattr(h, "_savings_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._savings_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
