"""
Logging setup for the API process.

Usage:
    from storefront.core.logging import configure_logging
    configure_logging()          # once, at startup

Modules log through the standard library: logging.getLogger(__name__).
"""

import logging
import sys
from typing import Optional

from storefront.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"


def _level(name: Optional[str]) -> int:
    return getattr(logging, str(name or "INFO").upper(), logging.INFO)


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stdout handler to the root logger unless one is already configured."""
    root = logging.getLogger()
    log_level = _level(level or settings.LOG_LEVEL)
    root.setLevel(log_level)
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    # production logs are collected with their own timestamps
    fmt = LOG_FORMAT_SIMPLE if settings.ENV == "production" else LOG_FORMAT
    handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "multipart", "filelock"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
