# src/extraction/pdf_reader.py - v1
"""PDF reader using PyMuPDF (fitz): page text and AcroForm widgets.

Requires the 'pymupdf' package. PyMuPDF is synchronous, so all document
work runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from docintel.core.models import DocumentText, FormField
from docintel.extraction.base_reader import BaseDocumentReader, DocumentAccessError

logger = logging.getLogger(__name__)

# PyMuPDF widget type names -> form field types used for completeness.
_WIDGET_TYPES: dict[str, str] = {
    "text": "text",
    "checkbox": "checkbox",
    "radiobutton": "radio",
    "combobox": "dropdown",
    "listbox": "dropdown",
    "signature": "signature",
    "button": "button",
}

# Checkbox "on" states observed in the wild
_CHECKED_VALUES = {"yes", "on", "true", "1", "x"}


def _import_fitz() -> Any:
    try:
        import fitz  # PyMuPDF
    except ImportError as e:
        raise ImportError(
            "pymupdf package required for PDF reading: pip install pymupdf"
        ) from e
    return fitz


class PdfReader(BaseDocumentReader):
    """Reader for PDF files using PyMuPDF."""

    @property
    def supported_extensions(self) -> list[str]:
        return [".pdf"]

    async def extract_text(self, path: str | Path) -> DocumentText:
        return await asyncio.to_thread(self._extract_text_sync, Path(path))

    async def read_form_fields(self, path: str | Path) -> list[FormField]:
        return await asyncio.to_thread(self._read_fields_sync, Path(path))

    # --- Internal helpers ---

    def _open(self, path: Path) -> Any:
        fitz = _import_fitz()
        if not path.is_file():
            raise DocumentAccessError(f"PDF not found: {path}")
        try:
            return fitz.open(str(path))
        except OSError as exc:
            raise DocumentAccessError(f"Cannot open {path}: {exc}") from exc

    def _extract_text_sync(self, path: Path) -> DocumentText:
        doc = self._open(path)
        try:
            parts = [page.get_text("text") for page in doc]
            return DocumentText(text="\n".join(parts), page_count=len(parts))
        finally:
            doc.close()

    def _read_fields_sync(self, path: Path) -> list[FormField]:
        doc = self._open(path)
        fields: list[FormField] = []
        try:
            for page in doc:
                for widget in page.widgets() or []:
                    fields.append(self._to_field(widget))
        finally:
            doc.close()
        logger.debug("Read %d form fields from %s", len(fields), path.name)
        return fields

    @staticmethod
    def _to_field(widget: Any) -> FormField:
        raw_type = str(getattr(widget, "field_type_string", "") or "").lower()
        field_type = _WIDGET_TYPES.get(raw_type, raw_type or "text")
        value = getattr(widget, "field_value", None)
        if field_type == "checkbox":
            value = value is True or str(value).strip().lower() in _CHECKED_VALUES
        elif value is not None and not isinstance(value, str):
            value = str(value)
        name = getattr(widget, "field_name", None) or getattr(widget, "field_label", None) or ""
        return FormField(name=str(name), type=field_type, value=value)
