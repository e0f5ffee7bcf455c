"""Bounded in-memory cache with per-entry expiry.

Holds uploaded documents between the upload request and the chat requests
that reference them. Entries expire after ``ttl_minutes``; a full cache
drops its oldest insertion to make room.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any


class DocumentCache:
    """Insertion-ordered map with TTL and a size cap."""

    def __init__(
        self,
        max_size: int = 100,
        ttl_minutes: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_minutes * 60
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None

            value, expiry = item
            if self._clock() > expiry:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            # Re-setting a key refreshes both its value and its position
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
            self._entries[key] = (value, self._clock() + self._ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()


# Module-level singleton instance
_document_cache: DocumentCache | None = None


def get_document_cache() -> DocumentCache:
    """Get or create the global document cache."""
    global _document_cache
    if _document_cache is None:
        _document_cache = DocumentCache()
    return _document_cache
