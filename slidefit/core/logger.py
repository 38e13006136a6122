import logging
import sys
from typing import Optional

from slidefit.core.config import settings

ROOT_LOGGER_NAME = "slidefit"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def _configure_root(level: str) -> logging.Logger:
    """Attach a single stream handler to the package root logger"""
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
        _configured = True
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the slidefit namespace, e.g. get_logger("image_cache")"""
    root = _configure_root(settings.log_level)
    if not name:
        return root
    return root.getChild(name)
