"""
Realtime fan-out slot.

A single process-wide publisher can be installed (a socket server, a
message bus client, ...). Without one, emit() is a no-op. Publisher
failures are logged and never reach the request that triggered them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Publisher = Callable[[str, dict[str, Any]], None]

_lock = threading.Lock()
_publisher: Publisher | None = None


def set_publisher(publisher: Publisher | None) -> None:
    global _publisher
    with _lock:
        _publisher = publisher


def get_publisher() -> Publisher | None:
    return _publisher


def emit(event: str, payload: dict[str, Any]) -> bool:
    """Publish an event; returns True if a publisher accepted it."""
    publisher = _publisher
    if publisher is None:
        return False
    try:
        publisher(event, payload)
    except Exception as e:
        logger.warning("Event publisher failed for %s: %s", event, e)
        return False
    return True
