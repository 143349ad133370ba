import logging
from typing import Optional

from app.core.config import settings

MASK = "***MASKED***"


def get_logger(name: str) -> logging.Logger:
    """Simple logger factory."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(settings.LOG_LEVEL.upper())
    return logger


def mask_secret(value: Optional[str]) -> str:
    """Loggable stand-in for a credential. Only presence is ever reported."""
    return MASK if value else "NOT SET or EMPTY"
