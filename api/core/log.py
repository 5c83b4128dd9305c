"""
Process-wide logging setup.
"""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Install one stream handler on the root logger.

    Calling this more than once only updates the level.
    """
    level_name = (level or settings.log_level()).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if any(getattr(h, "_marketplace", False) for h in root.handlers):
        return None

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._marketplace = True  # type: ignore[attr-defined]
    root.addHandler(handler)
