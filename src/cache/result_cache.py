# src/cache/result_cache.py - v1
"""Fingerprinted in-memory cache of intelligence results.

Validation rules applied on every read:
  1. entries older than the retention window (180 days by default) expire;
  2. entries whose file size or modification time changed are stale;
  3. entries whose file was deleted or became unreadable are stale.
Failed entries are evicted on the spot; there is no background sweep.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from docintel.cache.fingerprint import normalize_key, stat_fingerprint
from docintel.cache.models import CacheEntry
from docintel.core.models import IntelligenceResult

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


class IntelligenceCache:
    """Process-local result cache keyed by canonical document path.

    Args:
        retention_days: Maximum entry age before it expires.
        clock: Wall-clock source in epoch seconds (injectable for tests).
    """

    def __init__(
        self,
        retention_days: int = 180,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._retention_s = retention_days * _SECONDS_PER_DAY
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, file_path: str | Path) -> CacheEntry | None:
        """Return the entry for ``file_path`` if it is still valid."""
        key = normalize_key(file_path)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.computed_at > self._retention_s:
            logger.info("Cached intelligence expired for %s", key)
            self._evict(key, entry)
            return None

        live = stat_fingerprint(key)
        if live is None or live != entry.fingerprint:
            logger.debug("Cached intelligence stale for %s", key)
            self._evict(key, entry)
            return None

        return entry

    def set(self, file_path: str | Path, result: IntelligenceResult) -> None:
        """Store ``result`` with the file's current fingerprint.

        Nothing is cached when the file cannot be stat'ed.
        """
        key = normalize_key(file_path)
        fp = stat_fingerprint(key)
        if fp is None:
            logger.debug("Skipping cache write, cannot stat %s", key)
            return
        entry = CacheEntry(
            result=result,
            computed_at=self._clock(),
            file_size=fp.size,
            file_modified_at=fp.modified_at,
        )
        with self._lock:
            self._entries[key] = entry

    def clear(self, file_path: str | Path | None = None) -> None:
        """Drop one entry, or every entry when ``file_path`` is None."""
        with self._lock:
            if file_path is None:
                self._entries.clear()
            else:
                self._entries.pop(normalize_key(file_path), None)

    def stats(self) -> dict[str, object]:
        """Entry count and cached paths."""
        with self._lock:
            return {"size": len(self._entries), "files": list(self._entries)}

    def _evict(self, key: str, entry: CacheEntry) -> None:
        # A concurrent set() may have replaced the entry since we read it
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]
