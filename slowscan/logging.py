"""Logging helpers for slowscan.

Loggers are named ``slowscan.<area>`` and share one stream handler
configured from ``SSTV_LOG_LEVEL``.
"""

from __future__ import annotations

import logging
import sys

from slowscan.config import LOG_FORMAT, LOG_LEVEL

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger('slowscan')
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``slowscan`` namespace."""
    _configure_root()
    if not name.startswith('slowscan'):
        name = f'slowscan.{name}'
    return logging.getLogger(name)
