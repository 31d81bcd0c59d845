# src/cache/models.py - v1
"""Cache domain models: FileFingerprint, CacheEntry, CachedExtract."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from docintel.core.models import IntelligenceResult


class FileFingerprint(BaseModel):
    """Size and modification time (ns) of a file at a point in time."""

    size: int
    modified_at: int


class CacheEntry(BaseModel):
    """Cached intelligence plus the fingerprint it was computed against."""

    result: IntelligenceResult
    computed_at: float
    file_size: int
    file_modified_at: int

    @property
    def fingerprint(self) -> FileFingerprint:
        return FileFingerprint(size=self.file_size, modified_at=self.file_modified_at)


class CachedExtract(BaseModel):
    """Structured extraction of a document, its producer and the file it was read from."""

    data: Any
    at: float
    provider: str
    file_size: int
    file_modified_at: int

    @property
    def fingerprint(self) -> FileFingerprint:
        return FileFingerprint(size=self.file_size, modified_at=self.file_modified_at)
