# src/cache/fingerprint.py - v1
"""File fingerprinting and cache key canonicalization.

A fingerprint is the ``(size, mtime)`` pair of a file. It is cheap to take
on every read, which is what lets cached results be invalidated lazily
instead of by a background sweep.
"""

from __future__ import annotations

import os
from pathlib import Path

from docintel.cache.models import FileFingerprint


def normalize_key(file_path: str | Path) -> str:
    """Canonical absolute form of ``file_path`` used as a cache key."""
    try:
        return os.path.abspath(os.fspath(file_path))
    except (TypeError, ValueError):
        return str(file_path)


def stat_fingerprint(file_path: str | Path) -> FileFingerprint | None:
    """Return the live fingerprint of ``file_path``, or None if it cannot be stat'ed."""
    try:
        st = os.stat(file_path)
    except (OSError, ValueError):
        return None
    return FileFingerprint(size=st.st_size, modified_at=st.st_mtime_ns)
