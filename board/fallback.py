"""
Process-local fallback tier used when the remote key-value backend is unavailable.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional


class FallbackStore:
    """
    Thread-safe in-memory mapping of key -> serialized collection.

    Values are whole-collection replacements; nothing is mutated in place, so
    readers always see either the previous or the new snapshot. Contents live
    as long as the process and are never persisted.
    """

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)
