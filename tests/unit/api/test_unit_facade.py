# tests/unit/api/test_unit_facade.py - v1
"""Tests for api/facade.py: module-level functions over a shared orchestrator."""

from __future__ import annotations

import pytest

from docintel.api import facade
from docintel.config.settings import Settings
from docintel.extraction.reader_factory import DocumentReader
from docintel.pipeline.orchestrator import IntelligenceOrchestrator


@pytest.fixture(autouse=True)
def _reset_default():
    facade.configure(None)
    yield
    facade.configure(None)


@pytest.fixture
def installed(settings, fake_reader_cls, sample_fields) -> IntelligenceOrchestrator:
    orch = IntelligenceOrchestrator(
        settings=settings, backends=[], reader=fake_reader_cls(text="", fields=sample_fields),
    )
    facade.configure(orch)
    return orch


class TestFacade:
    def test_build_orchestrator(self):
        orch = facade.build_orchestrator(Settings(_env_file=None))
        assert isinstance(orch, IntelligenceOrchestrator)
        assert isinstance(orch._reader, DocumentReader)
        assert [b.name for b in orch._backends] == ["gemini", "codex", "claude"]

    def test_get_orchestrator_is_shared(self, installed):
        assert facade.get_orchestrator() is installed
        assert facade.get_orchestrator() is facade.get_orchestrator()

    @pytest.mark.asyncio
    async def test_get_intelligence_and_stats(self, installed, doc_file):
        result = await facade.get_intelligence(doc_file)
        assert result.metadata.mode == "heuristic"
        assert result.insights.completeness == 75
        assert facade.cache_stats()["size"] == 1
        facade.clear_cache()
        assert facade.cache_stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_classify_and_completeness(self, installed, doc_file):
        assert await facade.classify_document(doc_file) == "Trust"
        report = await facade.check_completeness(doc_file)
        assert report.percentage == 75
