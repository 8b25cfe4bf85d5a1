"""
Logging setup for Slink Store entry points.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed by whoever runs the process (the CLI here).
"""

import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install basic console logging unless the host application already did.

    Returns the package logger so callers can log under "slink_store".
    """
    name = (level or settings.LOG_LEVEL or "INFO").upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
    log = logging.getLogger("slink_store")
    log.setLevel(getattr(logging, name, logging.INFO))
    return log
