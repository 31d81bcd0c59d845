# tests/integration/pipeline/test_int_pipeline.py - v1
"""End-to-end pipeline runs over real files with the default document reader.

Back-ends are scripted fakes; everything else (reader, caches, extractor,
parser, normalizer, builders) is the production wiring.
"""

from __future__ import annotations

import asyncio
import json
import time

import pytest

from docintel.api import facade
from docintel.extraction.reader_factory import DocumentReader
from docintel.pipeline.orchestrator import IntelligenceOrchestrator

TRUST_TEXT = """THE DOE FAMILY REVOCABLE LIVING TRUST
Grantor: John Doe, SSN 123-45-6789
Trust EIN: 12-3456789
Successor Trustee: Nick Doe
Executor: Jane Doe
Executor: Jane Doe
Dated October 16, 2021
"""


@pytest.fixture
def trust_file(tmp_path):
    path = tmp_path / "doe_trust.txt"
    path.write_text(TRUST_TEXT, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_facade():
    yield
    facade.configure(None)


def _wire(settings, backends) -> IntelligenceOrchestrator:
    orch = IntelligenceOrchestrator(settings=settings, backends=backends, reader=DocumentReader())
    facade.configure(orch)
    return orch


class TestScenarios:
    @pytest.mark.asyncio
    async def test_legal_document_with_clean_backend(self, settings, fake_backend_cls,
                                                     legal_extract, trust_file):
        backend = fake_backend_cls("codex", [
            "Here is the extraction:\n```json\n" + json.dumps(legal_extract) + "\n```\nDone.",
        ])
        _wire(settings, [backend])

        result = await facade.get_intelligence(trust_file)

        assert result.metadata.mode == "extract-first"
        assert result.summary.category == "legal"
        rendered = json.dumps(result.model_dump(mode="json"))
        assert "123-45-6789" not in rendered
        assert "12-3456789" not in rendered
        assert "***-**-6789" in rendered

    @pytest.mark.asyncio
    async def test_no_authenticated_backend(self, settings, fake_backend_cls, trust_file):
        backends = [
            fake_backend_cls(name, [], authenticated=False) for name in ("codex", "gemini", "claude")
        ]
        _wire(settings, backends)

        result = await facade.get_intelligence(trust_file)

        assert result.metadata.mode == "heuristic"
        assert result.metadata.confidence == 0
        assert result.insights.key_insights
        assert result.insights.next_actions
        assert all(b.call_count == 0 for b in backends)

    @pytest.mark.asyncio
    async def test_sub_timeout_moves_to_next_stage(self, fast_settings, fake_backend_cls,
                                                   slow_cls, clean_summary_json, trust_file):
        backend = fake_backend_cls("codex", [slow_cls(10, "{}"), clean_summary_json])
        _wire(fast_settings, [backend])

        started = time.monotonic()
        result = await facade.get_intelligence(trust_file)
        elapsed_ms = (time.monotonic() - started) * 1000

        assert result.metadata.mode == "codex-short"
        assert elapsed_ms < fast_settings.intelligence_budget_ms

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_result(self, settings, fake_backend_cls, slow_cls,
                                                   legal_extract, trust_file):
        backend = fake_backend_cls("codex", [slow_cls(0.05, json.dumps(legal_extract))])
        _wire(settings, [backend])

        results = await asyncio.gather(*(facade.get_intelligence(trust_file) for _ in range(5)))

        assert all(r is results[0] for r in results)
        assert backend.call_count == 1

    @pytest.mark.asyncio
    async def test_edit_invalidates_cached_result(self, settings, fake_backend_cls,
                                                  clean_summary_json, trust_file):
        backend = fake_backend_cls("codex", [clean_summary_json, clean_summary_json])
        _wire(settings, [backend])

        first = await facade.get_intelligence(trust_file, quick=True)
        trust_file.write_text(TRUST_TEXT + "Amended 2024\n", encoding="utf-8")
        second = await facade.get_intelligence(trust_file, quick=True)

        assert first is not second
        assert "Amended 2024" in backend.prompts[1]
        # short prompts carry condensed text
        assert backend.prompts[0].count("Executor: Jane Doe") == 1

    @pytest.mark.asyncio
    async def test_edit_invalidates_cached_extraction(self, settings, fake_backend_cls,
                                                      legal_extract, trust_file):
        invoice = {"invoice": {"number": "INV-7", "balance": "$120.00"}}
        backend = fake_backend_cls("codex", [json.dumps(legal_extract), json.dumps(invoice)])
        _wire(settings, [backend])

        first = await facade.get_intelligence(trust_file)
        trust_file.write_text("INVOICE INV-7\nBalance due: $120.00\n", encoding="utf-8")
        second = await facade.get_intelligence(trust_file)

        assert first.summary.category == "legal"
        assert second.summary.category == "financial"
        assert backend.call_count == 2
        assert "INVOICE INV-7" in backend.prompts[1]


class TestPdfForms:
    @pytest.mark.asyncio
    async def test_completeness_from_pdf_widgets(self, settings, tmp_path):
        fitz = pytest.importorskip("fitz")
        path = tmp_path / "application.pdf"
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Rental application")
        for i, (name, value) in enumerate([("name", "Jane"), ("phone", ""), ("email", "j@x.io"),
                                           ("employer", "")]):
            widget = fitz.Widget()
            widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
            widget.field_name = name
            widget.field_value = value
            widget.rect = fitz.Rect(72, 100 + 30 * i, 300, 120 + 30 * i)
            page.add_widget(widget)
        doc.save(str(path))
        doc.close()

        _wire(settings, [])
        report = await facade.check_completeness(path)
        result = await facade.get_intelligence(path)

        assert report.percentage == 50
        assert sorted(report.missing_fields) == ["employer", "phone"]
        assert result.insights.completeness == 50
