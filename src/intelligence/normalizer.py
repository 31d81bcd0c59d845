# src/intelligence/normalizer.py - v1
"""Coerce a parsed model response into canonical Summary / Insights.

Models echo the prompt's shape more often than one would like: enum
placeholders ("tax|legal|..."), template items ("tip1", "...") and range
hints ("0-100"). Those are treated as missing values, never passed through.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from docintel.core.models import (
    CATEGORIES,
    IMPORTANCE_LEVELS,
    MAX_KEY_INSIGHTS,
    MAX_NEXT_ACTIONS,
    MAX_PROCESSING_TIPS,
    MAX_WARNINGS,
    Insights,
    Summary,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "other"
DEFAULT_IMPORTANCE = "medium"

_PUNCTUATION_ONLY_RE = re.compile(r"^[\W_]+$")
_TEMPLATE_TOKEN_RE = re.compile(
    r"^(?:tip|insight|key ?insight|action|next ?action|warning|fact|item|step|string|"
    r"key fact or data point|document type name|specific document name)"
    r"\s*[-_#]?\s*\d*$",
    re.IGNORECASE,
)
_NUMERIC_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")


class NormalizationError(ValueError):
    """The parsed object holds nothing usable for the result schema."""


def _match_enum(raw: Any, allowed: tuple[str, ...], default: str) -> str:
    """Containment match of ``raw`` against ``allowed``; pipes force ``default``."""
    if not isinstance(raw, str):
        return default
    value = raw.strip().lower()
    if not value or "|" in value:
        return default
    for option in allowed:
        if option in value:
            return option
    return default


def normalize_category(raw: Any) -> str:
    return _match_enum(raw, CATEGORIES, DEFAULT_CATEGORY)


def normalize_importance(raw: Any) -> str:
    return _match_enum(raw, IMPORTANCE_LEVELS, DEFAULT_IMPORTANCE)


def is_placeholder(value: str) -> bool:
    """Whether ``value`` is an unfilled template artifact."""
    text = value.strip()
    if not text or text == "..." or text == "…":
        return True
    if _PUNCTUATION_ONLY_RE.match(text):
        return True
    return bool(_TEMPLATE_TOKEN_RE.match(text))


def clean_text(raw: Any) -> str:
    """Trimmed string, or empty string when ``raw`` is missing or a placeholder."""
    if raw is None or isinstance(raw, (dict, list)):
        return ""
    text = str(raw).strip()
    return "" if is_placeholder(text) else text


def clean_list(raw: Any, limit: int) -> list[str]:
    """Filter placeholders out of a list of strings and cap its length."""
    if raw is None:
        return []
    items = [raw] if isinstance(raw, str) else raw
    if not isinstance(items, (list, tuple)):
        return []
    cleaned: list[str] = []
    for item in items:
        text = clean_text(item)
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned[:limit]


def normalize_completeness(raw: Any) -> int:
    """Integer in [0, 100]; anything non-numeric becomes 0."""
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip().rstrip("%").strip()
        if not _NUMERIC_RE.match(text):
            return 0
        value = float(text)
    else:
        return 0
    if math.isnan(value) or math.isinf(value):
        return 0
    return max(0, min(100, int(round(value))))


def normalize_intelligence(parsed: dict[str, Any]) -> tuple[Summary, Insights]:
    """Build canonical Summary and Insights from a parsed response.

    Accepts either ``{"summary": {...}, "insights": {...}}`` or a flat object
    carrying the fields of both.

    Raises:
        NormalizationError: If no title, description, document type or key
            insight survives cleaning.
    """
    summary_raw = parsed.get("summary")
    insights_raw = parsed.get("insights")
    if not isinstance(summary_raw, dict):
        summary_raw = parsed
    if not isinstance(insights_raw, dict):
        insights_raw = parsed

    title = clean_text(summary_raw.get("title"))
    description = clean_text(summary_raw.get("description"))
    document_type = clean_text(
        insights_raw.get("documentType", insights_raw.get("document_type"))
    )
    key_insights = clean_list(
        insights_raw.get("keyInsights", insights_raw.get("key_insights")), MAX_KEY_INSIGHTS
    )

    if not (title or description or document_type or key_insights):
        raise NormalizationError("Response contains no usable summary or insight fields")

    summary = Summary(
        title=title or document_type or "Document",
        description=description,
        category=normalize_category(summary_raw.get("category")),
        importance=normalize_importance(summary_raw.get("importance")),
        processing_tips=clean_list(
            summary_raw.get("processingTips", summary_raw.get("processing_tips")),
            MAX_PROCESSING_TIPS,
        ),
    )
    insights = Insights(
        document_type=document_type or summary.title,
        completeness=normalize_completeness(insights_raw.get("completeness")),
        key_insights=key_insights,
        next_actions=clean_list(
            insights_raw.get("nextActions", insights_raw.get("next_actions")), MAX_NEXT_ACTIONS
        ),
        warnings=clean_list(insights_raw.get("warnings"), MAX_WARNINGS),
    )
    logger.debug(
        "Normalized response: category=%s importance=%s insights=%d",
        summary.category, summary.importance, len(insights.key_insights),
    )
    return summary, insights
