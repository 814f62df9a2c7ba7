"""Loguru setup for applications embedding simply_mongo."""

from __future__ import annotations

import os
import sys
from typing import Optional

from loguru import logger


def configure_logging(level: Optional[str] = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``.

    Without an explicit level, ``LOG_LEVEL`` or ``LOGURU_LEVEL`` is used,
    falling back to ``INFO``.
    """

    level = level or os.getenv("LOG_LEVEL") or os.getenv("LOGURU_LEVEL") or "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    logger.info("Logger configured at {level} level", level=level.upper())
