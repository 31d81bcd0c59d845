# tests/unit/extraction/test_unit_structured_extractor.py - v1
"""Tests for extraction/structured_extractor.py: caching and single-flight."""

from __future__ import annotations

import asyncio
import json

import pytest

from docintel.backends.base_backend import BackendError, BackendTimeout
from docintel.cache.extract_cache import ExtractCache
from docintel.extraction.structured_extractor import ExtractionParseError, StructuredExtractor


@pytest.fixture
def extract_cache() -> ExtractCache:
    return ExtractCache()


class TestStructuredExtractor:
    @pytest.mark.asyncio
    async def test_extract_and_cache(self, settings, extract_cache, fake_backend_cls, legal_extract,
                                     doc_file):
        backend = fake_backend_cls("gemini", [f"```json\n{json.dumps(legal_extract)}\n```"])
        extractor = StructuredExtractor(extract_cache, settings)
        data = await extractor.extract(doc_file, "trust text", backend, 5_000)
        assert data == legal_extract
        assert "ONLY a JSON object" in backend.prompts[0]
        assert backend.timeouts == [5_000]
        cached = extract_cache.get(doc_file)
        assert cached is not None
        assert cached.provider == "gemini"

    @pytest.mark.asyncio
    async def test_cached_extraction_reused(self, settings, extract_cache, fake_backend_cls,
                                            doc_file):
        extract_cache.set(doc_file, {"trust": {"name": "X"}}, "codex")
        backend = fake_backend_cls("gemini", [])
        extractor = StructuredExtractor(extract_cache, settings)
        data = await extractor.extract(doc_file, "", backend, 5_000)
        assert data == {"trust": {"name": "X"}}
        assert backend.call_count == 0

    @pytest.mark.asyncio
    async def test_extraction_of_edited_file_not_reused(self, settings, extract_cache,
                                                        fake_backend_cls, doc_file):
        extract_cache.set(doc_file, {"trust": {"name": "Old"}}, "codex")
        doc_file.write_bytes(b"%PDF-1.4 amended and longer than before")
        backend = fake_backend_cls("codex", ['{"trust": {"name": "New"}}'])
        extractor = StructuredExtractor(extract_cache, settings)

        data = await extractor.extract(doc_file, "", backend, 5_000)

        assert data == {"trust": {"name": "New"}}
        assert backend.call_count == 1
        assert extract_cache.get(doc_file).data == {"trust": {"name": "New"}}

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_invocation(
        self, settings, extract_cache, fake_backend_cls, slow_cls
    ):
        backend = fake_backend_cls("codex", [slow_cls(0.05, '{"a": 1}')])
        extractor = StructuredExtractor(extract_cache, settings)
        first, second = await asyncio.gather(
            extractor.extract("/docs/a.pdf", "x", backend, 5_000),
            extractor.extract("/docs/a.pdf", "x", backend, 5_000),
        )
        assert first is second
        assert backend.call_count == 1
        assert len(extract_cache.inflight) == 0

    @pytest.mark.asyncio
    async def test_unparseable_response(self, settings, extract_cache, fake_backend_cls):
        backend = fake_backend_cls("codex", ["Sorry, I cannot help with that."])
        extractor = StructuredExtractor(extract_cache, settings)
        with pytest.raises(ExtractionParseError):
            await extractor.extract("/docs/a.pdf", "x", backend, 5_000)
        assert extract_cache.get("/docs/a.pdf") is None

    @pytest.mark.asyncio
    async def test_timeout(self, settings, extract_cache, fake_backend_cls, slow_cls):
        backend = fake_backend_cls("codex", [slow_cls(5, '{"a": 1}')])
        extractor = StructuredExtractor(extract_cache, settings)
        with pytest.raises(BackendTimeout):
            await extractor.extract("/docs/a.pdf", "x", backend, 50)
        await asyncio.sleep(0.01)
        assert extract_cache.get("/docs/a.pdf") is None

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, settings, extract_cache, fake_backend_cls):
        backend = fake_backend_cls("codex", [BackendError("codex", "quota exceeded")])
        extractor = StructuredExtractor(extract_cache, settings)
        with pytest.raises(BackendError, match="quota"):
            await extractor.extract("/docs/a.pdf", "x", backend, 5_000)
        await asyncio.sleep(0)
        assert len(extract_cache.inflight) == 0

    @pytest.mark.asyncio
    async def test_text_truncated(self, settings, extract_cache, fake_backend_cls):
        backend = fake_backend_cls("codex", ['{"a": 1}'])
        extractor = StructuredExtractor(extract_cache, settings)
        await extractor.extract("/docs/a.pdf", "z" * 50_000, backend, 5_000)
        assert backend.prompts[0].count("z") == settings.extract_text_max_chars
