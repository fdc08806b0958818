"""A small thread-safe in-memory cache with per-entry expiry."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class _Entry:
    data: Any
    expires_at: float


class TtlCache:
    """Maps keys to values that expire after a given number of seconds."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, _Entry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._store[key]
                return None
            return entry.data

    def set(self, key: str, data: Any, ttl: float) -> None:
        """Store a value that lives for ``ttl`` seconds."""
        with self._lock:
            self._store[key] = _Entry(data, self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)