"""
Logging setup for CivicWatch Hazard Hub.

Services log through module-level loggers (logging.getLogger(__name__));
this module only configures the root handler once at startup.
"""

import logging
import sys

from app.core.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = None) -> None:
    """Configure the root logger from LOG_LEVEL (idempotent)."""
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_civicwatch", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._civicwatch = True
        root.addHandler(handler)
