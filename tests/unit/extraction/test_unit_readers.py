# tests/unit/extraction/test_unit_readers.py - v1
"""Tests for extraction readers and the reader factory."""

from __future__ import annotations

import pytest

from docintel.extraction.base_reader import BaseDocumentReader, DocumentAccessError
from docintel.extraction.pdf_reader import PdfReader
from docintel.extraction.reader_factory import (
    DocumentReader,
    UnsupportedFormatError,
    create_reader,
    supported_extensions,
)
from docintel.extraction.txt_reader import TxtReader


class TestBaseReader:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseDocumentReader()  # type: ignore[abstract]

    def test_access_error_is_oserror(self):
        assert issubclass(DocumentAccessError, OSError)


class TestTxtReader:
    @pytest.mark.asyncio
    async def test_reads_text(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Last will and testament\n", encoding="utf-8")
        doc = await TxtReader().extract_text(path)
        assert doc.text == "Last will and testament\n"
        assert doc.page_count == 1

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_bytes(b"caf\xe9")
        doc = await TxtReader().extract_text(path)
        assert doc.text.startswith("caf")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentAccessError):
            await TxtReader().extract_text(tmp_path / "missing.txt")

    @pytest.mark.asyncio
    async def test_no_form_fields(self, tmp_path):
        assert await TxtReader().read_form_fields(tmp_path / "x.txt") == []


class TestReaderFactory:
    def test_create_reader(self):
        assert isinstance(create_reader(".pdf"), PdfReader)
        assert isinstance(create_reader("TXT"), TxtReader)

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError, match=".docx"):
            create_reader(".docx")

    def test_supported_extensions(self):
        assert ".pdf" in supported_extensions()
        assert ".md" in supported_extensions()

    @pytest.mark.asyncio
    async def test_document_reader_dispatch(self, tmp_path):
        path = tmp_path / "memo.md"
        path.write_text("# Memo", encoding="utf-8")
        reader = DocumentReader()
        assert (await reader.extract_text(path)).text == "# Memo"
        assert await reader.read_form_fields(path) == []


class TestPdfReader:
    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        pytest.importorskip("fitz")
        with pytest.raises(DocumentAccessError):
            await PdfReader().extract_text(tmp_path / "missing.pdf")

    @pytest.mark.asyncio
    async def test_text_and_widgets(self, tmp_path):
        fitz = pytest.importorskip("fitz")
        path = tmp_path / "form.pdf"
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Revocable Living Trust")

        name = fitz.Widget()
        name.field_type = fitz.PDF_WIDGET_TYPE_TEXT
        name.field_name = "full_name"
        name.field_value = "Jane Doe"
        name.rect = fitz.Rect(72, 100, 300, 120)
        page.add_widget(name)

        phone = fitz.Widget()
        phone.field_type = fitz.PDF_WIDGET_TYPE_TEXT
        phone.field_name = "phone"
        phone.rect = fitz.Rect(72, 130, 300, 150)
        page.add_widget(phone)

        doc.save(str(path))
        doc.close()

        reader = PdfReader()
        text = await reader.extract_text(path)
        assert "Revocable Living Trust" in text.text
        assert text.page_count == 1

        fields = await reader.read_form_fields(path)
        by_name = {f.name: f for f in fields}
        assert set(by_name) == {"full_name", "phone"}
        assert by_name["full_name"].type == "text"
        assert by_name["full_name"].value == "Jane Doe"
        assert not (by_name["phone"].value or "").strip()
