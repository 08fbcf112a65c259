"""Structured logging helpers.

Call sites log an event name as the message and attach context under
``extra={"extra": {...}}`` so every record renders as one JSON line.
"""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

_ROOT_NAME = "api_client"
_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    """Attach a JSON handler to the package root logger (idempotent)."""
    global _configured
    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(level)
    if _configured:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "ts"},
        )
    )
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
