"""Named loggers for the waiver engine."""

from __future__ import annotations

import logging
from typing import Optional, Union


ROOT_LOGGER = "waivefee"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``waivefee`` namespace."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(level: Union[int, str] = logging.INFO, fmt: Optional[str] = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling it twice does not stack handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    logger.setLevel(level)
    if not any(getattr(h, "_waivefee", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt or LOG_FORMAT))
        handler._waivefee = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
