# src/cache/extract_cache.py - v1
"""Cache of structured extractions, shared by the extraction and intelligence paths.

Carries its own single-flight registry so that an extraction started for one
purpose is awaited, not repeated, by the other. Entries are tied to the
file's size and modification time and are dropped once either changes.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any

from docintel.cache.fingerprint import normalize_key, stat_fingerprint
from docintel.cache.inflight import InFlightRegistry
from docintel.cache.models import CachedExtract

logger = logging.getLogger(__name__)


class ExtractCache:
    """Process-local map of normalized path -> CachedExtract."""

    def __init__(self) -> None:
        self._entries: dict[str, CachedExtract] = {}
        self._lock = threading.Lock()
        self.inflight: InFlightRegistry[dict[str, Any]] = InFlightRegistry()

    def get(self, file_path: str | Path) -> CachedExtract | None:
        """Return the extraction for ``file_path`` if the file is unchanged."""
        key = normalize_key(file_path)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None

        live = stat_fingerprint(key)
        if live is None or live != entry.fingerprint:
            logger.debug("Cached extraction stale for %s", key)
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            return None
        return entry

    def set(
        self, file_path: str | Path, data: dict[str, Any], provider: str
    ) -> CachedExtract | None:
        """Store ``data`` with the file's current fingerprint.

        Returns None, and stores nothing, when the file cannot be stat'ed.
        """
        key = normalize_key(file_path)
        fp = stat_fingerprint(key)
        if fp is None:
            logger.debug("Skipping extraction cache write, cannot stat %s", key)
            return None
        entry = CachedExtract(
            data=data,
            at=time.time(),
            provider=provider,
            file_size=fp.size,
            file_modified_at=fp.modified_at,
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self, file_path: str | Path | None = None) -> None:
        with self._lock:
            if file_path is None:
                self._entries.clear()
            else:
                self._entries.pop(normalize_key(file_path), None)

    def stats(self) -> dict[str, object]:
        with self._lock:
            return {"size": len(self._entries), "files": list(self._entries)}
