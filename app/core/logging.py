"""
app/core/logging.py

Shared logger factory used by the services and routers.
"""

import logging

from app.core.config import settings

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(settings.LOG_LEVEL.upper())
        fmt = logging.Formatter(_FORMAT)
        # Console handler
        ch = logging.StreamHandler()
        ch.setFormatter(fmt)
        logger.addHandler(ch)
        # File handler, only when a log directory is configured
        if settings.LOG_DIR is not None:
            settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(settings.LOG_DIR / f"{name}.log")
            fh.setFormatter(fmt)
            logger.addHandler(fh)
    return logger
