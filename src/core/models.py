# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Category = Literal["tax", "legal", "financial", "business", "personal", "other"]
Importance = Literal["critical", "high", "medium", "low"]

CATEGORIES: tuple[str, ...] = ("tax", "legal", "financial", "business", "personal", "other")
IMPORTANCE_LEVELS: tuple[str, ...] = ("critical", "high", "medium", "low")

MAX_PROCESSING_TIPS = 5
MAX_KEY_INSIGHTS = 8
MAX_NEXT_ACTIONS = 6
MAX_WARNINGS = 6
MAX_CONFIDENCE = 95

MODE_EXTRACT_FIRST = "extract-first"
MODE_HEURISTIC = "heuristic"
LOCAL_PROVIDER = "local"


def short_mode(backend: str) -> str:
    """Mode tag for a result produced by the short-summarize stage."""
    return f"{backend}-short"


# === DOCUMENT INPUT ===


class DocumentText(BaseModel):
    """Plain text read from a document."""

    text: str = ""
    page_count: int = 0


class FormField(BaseModel):
    """Single interactive form field and its current value."""

    name: str
    type: str = "text"
    value: Any = None


# === INTELLIGENCE RESULT ===


class Summary(BaseModel):
    """What the document is and how much it matters."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    category: Category = "other"
    importance: Importance = "medium"
    processing_tips: list[str] = Field(default_factory=list, max_length=MAX_PROCESSING_TIPS)


class Insights(BaseModel):
    """Key facts and recommended follow-ups."""

    model_config = ConfigDict(frozen=True)

    document_type: str = "Document"
    completeness: int = Field(default=0, ge=0, le=100)
    key_insights: list[str] = Field(default_factory=list, max_length=MAX_KEY_INSIGHTS)
    next_actions: list[str] = Field(default_factory=list, max_length=MAX_NEXT_ACTIONS)
    warnings: list[str] = Field(default_factory=list, max_length=MAX_WARNINGS)


class IntelligenceMetadata(BaseModel):
    """How and when a result was produced."""

    model_config = ConfigDict(frozen=True)

    analyzed_at: datetime
    processing_time_ms: int = Field(ge=0)
    confidence: int = Field(ge=0, le=MAX_CONFIDENCE)
    provider: str
    mode: str

    @property
    def path_tag(self) -> str:
        """Compact ``provider:mode`` tag for diagnostics headers and logs."""
        return f"{self.provider}:{self.mode}"


class IntelligenceResult(BaseModel):
    """Validated intelligence for one document. Shared read-only."""

    model_config = ConfigDict(frozen=True)

    summary: Summary
    insights: Insights
    metadata: IntelligenceMetadata


class CompletenessReport(BaseModel):
    """Deterministic completeness check derived from form fields."""

    complete: bool
    percentage: int = Field(ge=0, le=100)
    missing_fields: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
