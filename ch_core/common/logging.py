# ch_core/common/logging.py
from __future__ import annotations

import sys
from typing import Optional

from django.conf import settings
from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install the single stderr sink used by every app.

    Called once from CommonConfig.ready(); repeated calls are no-ops so that
    test runners reloading apps do not stack sinks.
    """
    global _configured
    if _configured:
        return

    logger.remove()
    logger.configure(extra={"module": "ch_core"})
    logger.add(
        sys.stderr,
        level=level or getattr(settings, "LOG_LEVEL", "INFO"),
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    _configured = True


def get_logger(name: Optional[str] = None, **kwargs):
    """Return a logger bound with an optional module/component name."""
    if name:
        return logger.bind(module=name, **kwargs)
    return logger.bind(**kwargs)
