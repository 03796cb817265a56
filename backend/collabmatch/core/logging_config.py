# backend/collabmatch/core/logging_config.py
from __future__ import annotations

import logging

from .config import LOG_LEVEL


def configure_logging(log_level: str = LOG_LEVEL) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)
