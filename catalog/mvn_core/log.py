"""
Logging setup for processes embedding the catalog core.

Modules log through logging.getLogger(__name__) and pass structured context
in extra={...}. setup_logging() installs one stream handler on the root
logger; the json format renders the extra fields as JSON keys.
"""

from __future__ import annotations

import logging
from typing import Optional

import json_log_formatter

from .config import CoreSettings, get_settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Optional[CoreSettings] = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Core settings (loaded from env if not provided)
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
