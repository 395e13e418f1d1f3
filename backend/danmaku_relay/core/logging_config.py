"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the package logger."""
    logger = logging.getLogger("danmaku_relay")
    logger.setLevel(level.upper())
    if any(getattr(handler, "_danmaku_relay", False) for handler in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._danmaku_relay = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
