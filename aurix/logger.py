"""
Logging setup.

Modules take a logger with ``get_logger(__name__)``; the application entry
point calls ``configure_logging`` once with the configured level.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install a stream handler on the ``aurix`` logger (idempotent)."""
    global _configured

    root = logging.getLogger("aurix")
    root.setLevel((level or "INFO").upper())

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
