# src/extraction/txt_reader.py - v1
"""Plain text reader: passthrough with lenient decoding."""

from __future__ import annotations

import asyncio
from pathlib import Path

from docintel.core.models import DocumentText
from docintel.extraction.base_reader import BaseDocumentReader, DocumentAccessError


class TxtReader(BaseDocumentReader):
    """Reader for plain text and markdown files."""

    @property
    def supported_extensions(self) -> list[str]:
        return [".txt", ".md", ".csv", ".json"]

    async def extract_text(self, path: str | Path) -> DocumentText:
        try:
            raw = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as exc:
            raise DocumentAccessError(f"Cannot read {path}: {exc}") from exc
        text = raw.decode("utf-8", errors="replace")
        return DocumentText(text=text, page_count=1 if text else 0)
