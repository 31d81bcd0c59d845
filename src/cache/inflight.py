# src/cache/inflight.py - v1
"""Single-flight registry: at most one pending computation per document path.

The registry is a passive map. The caller enforces the protocol:
check, then register synchronously before the first ``await``, then remove
the entry when the computation finishes whatever its outcome.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Generic, TypeVar

from docintel.cache.fingerprint import normalize_key

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    """Map of normalized path -> pending ``asyncio.Future``."""

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Future[T]] = {}
        self._lock = threading.Lock()

    def get(self, file_path: str | Path) -> asyncio.Future[T] | None:
        with self._lock:
            return self._pending.get(normalize_key(file_path))

    def set(self, file_path: str | Path, handle: asyncio.Future[T]) -> None:
        with self._lock:
            self._pending[normalize_key(file_path)] = handle

    def discard(self, file_path: str | Path, handle: asyncio.Future[T]) -> None:
        """Remove the entry only if it still points at ``handle``."""
        key = normalize_key(file_path)
        with self._lock:
            if self._pending.get(key) is handle:
                del self._pending[key]

    def clear(self, file_path: str | Path | None = None) -> None:
        with self._lock:
            if file_path is None:
                self._pending.clear()
            else:
                self._pending.pop(normalize_key(file_path), None)

    def register(self, file_path: str | Path, handle: asyncio.Future[T]) -> asyncio.Future[T]:
        """Store ``handle`` and arrange its removal once it completes."""
        self.set(file_path, handle)
        handle.add_done_callback(lambda done: self.discard(file_path, done))
        return handle

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
