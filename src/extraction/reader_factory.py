# src/extraction/reader_factory.py - v1
"""Factory: pick a document reader from the file extension."""

from __future__ import annotations

from pathlib import Path

from docintel.core.models import DocumentText, FormField
from docintel.extraction.base_reader import BaseDocumentReader
from docintel.extraction.pdf_reader import PdfReader
from docintel.extraction.txt_reader import TxtReader

# Registry maps extension -> reader class.
_READER_REGISTRY: dict[str, type[BaseDocumentReader]] = {}


def _register_defaults() -> None:
    """Register built-in readers."""
    for cls in (TxtReader, PdfReader):
        for ext in cls().supported_extensions:
            _READER_REGISTRY[ext.lower()] = cls


_register_defaults()


class UnsupportedFormatError(ValueError):
    """Raised when no reader is available for a format."""


def create_reader(extension: str) -> BaseDocumentReader:
    """Create a reader for the given file extension.

    Raises:
        UnsupportedFormatError: If no reader is registered.
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"

    cls = _READER_REGISTRY.get(ext)
    if cls is None:
        raise UnsupportedFormatError(
            f"No reader for format {ext!r}. "
            f"Supported: {', '.join(sorted(_READER_REGISTRY))}"
        )
    return cls()


def register_reader(extension: str, cls: type[BaseDocumentReader]) -> None:
    """Register a custom reader for an extension."""
    _READER_REGISTRY[extension.lower()] = cls


def supported_extensions() -> list[str]:
    return sorted(_READER_REGISTRY)


class DocumentReader(BaseDocumentReader):
    """Reader that dispatches to the registered reader for each file."""

    @property
    def supported_extensions(self) -> list[str]:
        return supported_extensions()

    async def extract_text(self, path: str | Path) -> DocumentText:
        return await create_reader(Path(path).suffix).extract_text(path)

    async def read_form_fields(self, path: str | Path) -> list[FormField]:
        return await create_reader(Path(path).suffix).read_form_fields(path)
