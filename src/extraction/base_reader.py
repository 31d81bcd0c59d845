# src/extraction/base_reader.py - v1
"""Abstract document reader interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from docintel.core.models import DocumentText, FormField


class DocumentAccessError(OSError):
    """The document itself cannot be stat'ed, opened or read."""


class BaseDocumentReader(ABC):
    """Reads plain text and form fields from a document on disk."""

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """File extensions this reader handles (e.g., ['.pdf'])."""

    @abstractmethod
    async def extract_text(self, path: str | Path) -> DocumentText:
        """Extract the plain text of the document.

        Raises:
            DocumentAccessError: If the file cannot be opened or read.
        """

    async def read_form_fields(self, path: str | Path) -> list[FormField]:
        """Interactive form fields; formats without forms have none."""
        return []
