# tests/conftest.py - v1
"""Shared test fixtures for unit and integration tests.

Provides scripted back-ends, an in-memory document reader, isolated
settings and sample documents. No network access: every back-end is fake.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from docintel.backends.base_backend import BackendError, BackendTimeout, BaseBackend
from docintel.config.settings import Settings
from docintel.core.models import DocumentText, FormField
from docintel.extraction.base_reader import BaseDocumentReader


# === FAKES ===


@dataclass
class Slow:
    """Scripted response delivered after ``seconds`` (bounded by the call timeout)."""

    seconds: float
    response: Any = ""


class FakeBackend(BaseBackend):
    """Back-end that replays scripted responses in call order.

    A script entry is a string (returned), an exception (raised) or a Slow
    wrapper. Calls past the end of the script raise BackendError.
    """

    def __init__(
        self,
        name: str = "codex",
        responses: list[Any] | None = None,
        authenticated: bool = True,
    ) -> None:
        self._name = name
        self.responses = list(responses or [])
        self.authenticated = authenticated
        self.prompts: list[str] = []
        self.timeouts: list[int] = []
        self.auth_checks = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def is_authenticated(self) -> bool:
        self.auth_checks += 1
        return self.authenticated

    async def invoke(self, prompt: str, timeout_ms: int) -> str:
        self.prompts.append(prompt)
        self.timeouts.append(timeout_ms)
        if not self.responses:
            raise BackendError(self._name, "no scripted response left")
        entry = self.responses.pop(0)
        if isinstance(entry, Slow):
            try:
                await asyncio.wait_for(asyncio.sleep(entry.seconds), timeout_ms / 1000)
            except asyncio.TimeoutError as exc:
                raise BackendTimeout(self._name, timeout_ms) from exc
            entry = entry.response
        if isinstance(entry, BaseException):
            raise entry
        return entry


class FakeReader(BaseDocumentReader):
    """Reader returning fixed text and fields for any path."""

    def __init__(
        self,
        text: str = "",
        fields: list[FormField] | None = None,
        page_count: int = 1,
        text_error: Exception | None = None,
        fields_error: Exception | None = None,
    ) -> None:
        self.text = text
        self.fields = fields or []
        self.page_count = page_count
        self.text_error = text_error
        self.fields_error = fields_error
        self.text_calls = 0

    @property
    def supported_extensions(self) -> list[str]:
        return [".pdf", ".txt"]

    async def extract_text(self, path: str | Path) -> DocumentText:
        self.text_calls += 1
        if self.text_error is not None:
            raise self.text_error
        return DocumentText(text=self.text, page_count=self.page_count)

    async def read_form_fields(self, path: str | Path) -> list[FormField]:
        if self.fields_error is not None:
            raise self.fields_error
        return list(self.fields)


# === FIXTURES: Fakes ===


@pytest.fixture
def fake_backend_cls() -> type[FakeBackend]:
    return FakeBackend


@pytest.fixture
def fake_reader_cls() -> type[FakeReader]:
    return FakeReader


@pytest.fixture
def slow_cls() -> type[Slow]:
    return Slow


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None, primary_backend="codex", backend_order="codex,gemini,claude")


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with sub-second stage timeouts for timing-sensitive tests."""
    return Settings(
        _env_file=None,
        primary_backend="codex",
        backend_order="codex,gemini,claude",
        intelligence_budget_ms=3_000,
        quick_threshold_ms=0,
        stage_floor_ms=0,
        extract_max_timeout_ms=200,
        extract_min_timeout_ms=100,
        extract_reserve_ms=0,
        extract_min_viable_ms=50,
        short_max_timeout_ms=1_000,
        short_min_timeout_ms=200,
        refine_max_timeout_ms=500,
    )


# === FIXTURES: Sample data ===


@pytest.fixture
def legal_extract() -> dict[str, Any]:
    """Structured extraction of a trust-based estate plan."""
    return {
        "document_title": "Estate Plan for John and Jane Doe",
        "document_type": "Estate Plan",
        "trust": {
            "name": "The Doe Family Revocable Living Trust",
            "ein": "12-3456789",
            "successor_trustee": "Nick Doe",
        },
        "grantor": {"name": "John Doe", "ssn": "123-45-6789"},
        "will": {
            "executor": {"primary": "Jane Doe", "alternate": "Nick Doe"},
            "guardianship": {"primary_guardian": "Nick Doe"},
        },
        "prepared_date": "2021-10-16",
    }


@pytest.fixture
def clean_summary_json() -> str:
    """A well-formed short-summary response."""
    return json.dumps({
        "summary": {
            "title": "Doe Family Trust",
            "description": "Revocable living trust naming a successor trustee.",
            "category": "legal",
            "importance": "high",
            "processingTips": ["Store the signed original safely"],
        },
        "insights": {
            "documentType": "Revocable Living Trust",
            "completeness": 80,
            "keyInsights": ["Trustee: Jane Doe", "Successor: Nick Doe", "Signed 2021"],
            "nextActions": ["Fund the trust", "Review beneficiaries"],
            "warnings": [],
        },
    })


@pytest.fixture
def sample_fields() -> list[FormField]:
    """Four fields of which three are filled."""
    return [
        FormField(name="full_name", type="text", value="Jane Doe"),
        FormField(name="agree", type="checkbox", value=True),
        FormField(name="marital_status", type="radio", value="Yes"),
        FormField(name="state", type="dropdown", value=""),
    ]


@pytest.fixture
def doc_file(tmp_path: Path) -> Path:
    """A real file on disk so fingerprints can be taken."""
    path = tmp_path / "doe_family_trust.pdf"
    path.write_bytes(b"%PDF-1.4 placeholder")
    return path


@pytest.fixture
def sample_result():
    """A minimal valid IntelligenceResult."""
    from datetime import datetime, timezone

    from docintel.core.models import (
        Insights,
        IntelligenceMetadata,
        IntelligenceResult,
        Summary,
    )

    return IntelligenceResult(
        summary=Summary(title="Trust", category="legal", importance="high"),
        insights=Insights(document_type="Trust", key_insights=["Trustee: Jane"]),
        metadata=IntelligenceMetadata(
            analyzed_at=datetime.now(timezone.utc),
            processing_time_ms=12,
            confidence=70,
            provider="codex",
            mode="extract-first",
        ),
    )
