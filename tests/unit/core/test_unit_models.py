# tests/unit/core/test_unit_models.py - v1
"""Tests for core/models.py: schema caps and immutability."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from docintel.core.models import (
    MAX_CONFIDENCE,
    CompletenessReport,
    Insights,
    IntelligenceMetadata,
    Summary,
    short_mode,
)


class TestSummaryAndInsights:
    def test_defaults(self):
        s = Summary(title="Doc")
        assert s.category == "other"
        assert s.importance == "medium"
        assert s.processing_tips == []

    def test_invalid_category(self):
        with pytest.raises(ValidationError):
            Summary(title="Doc", category="medical")  # type: ignore[arg-type]

    def test_caps(self):
        with pytest.raises(ValidationError):
            Summary(title="Doc", processing_tips=["t"] * 6)
        with pytest.raises(ValidationError):
            Insights(key_insights=["k"] * 9)

    def test_completeness_range(self):
        with pytest.raises(ValidationError):
            Insights(completeness=101)

    def test_frozen(self):
        s = Summary(title="Doc")
        with pytest.raises(ValidationError):
            s.title = "Other"  # type: ignore[misc]


class TestMetadata:
    def test_confidence_cap(self):
        with pytest.raises(ValidationError):
            IntelligenceMetadata(
                analyzed_at=datetime.now(timezone.utc), processing_time_ms=1,
                confidence=MAX_CONFIDENCE + 1, provider="codex", mode="extract-first",
            )

    def test_path_tag(self, sample_result):
        assert sample_result.metadata.path_tag == "codex:extract-first"

    def test_short_mode(self):
        assert short_mode("gemini") == "gemini-short"

    def test_json_round_trip(self, sample_result):
        payload = sample_result.model_dump(mode="json")
        assert payload["summary"]["category"] == "legal"
        assert isinstance(payload["metadata"]["analyzed_at"], str)


def test_completeness_report_defaults():
    report = CompletenessReport(complete=False, percentage=0)
    assert report.missing_fields == []
