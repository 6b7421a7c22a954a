"""
Logging setup shared across the application.
"""

import logging
import sys

from harmony.core.config import get_settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """Return a logger with the application handler attached once."""
    log = logging.getLogger(name)
    root = logging.getLogger("harmony")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(get_settings().LOG_LEVEL.upper())
        root.propagate = False
    return log


logger = setup_logger("harmony")
