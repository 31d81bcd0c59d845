# src/intelligence/heuristics.py - v1
"""Keyword classifier used when no back-end can produce a result.

Deterministic and call-free: the terminal stage of the pipeline, so it must
always return something a user can act on.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from docintel.core.models import FormField, Insights, Summary
from docintel.intelligence.completeness import compute_field_completeness, is_field_filled

_LEGAL_KEYWORDS = ("estate", "trust", "will", "executor", "guardianship")
_TAX_KEYWORDS = ("irs", "1040", "schedule", "k-1", "form ")
_FINANCIAL_KEYWORDS = ("invoice", "statement", "account", "balance")


@dataclass(frozen=True)
class _Profile:
    description: str
    tips: tuple[str, ...]
    actions: tuple[str, ...]


_PROFILES: dict[str, _Profile] = {
    "legal": _Profile(
        description="Legal or estate planning document",
        tips=(
            "Confirm named roles (executor, trustee, guardians) are accurate",
            "Keep the signed original in a safe place",
        ),
        actions=(
            "Confirm named roles and beneficiaries",
            "Check signatures, dates and notarization",
            "Share copies with the people named in the document",
        ),
    ),
    "tax": _Profile(
        description="Tax form or tax-related filing",
        tips=(
            "Verify SSN/EIN and filing year",
            "Cross-check amounts against W-2 and 1099 records",
        ),
        actions=(
            "Verify SSN/EIN and filing year",
            "Confirm the filing deadline",
            "Keep a copy with your tax records",
        ),
    ),
    "financial": _Profile(
        description="Financial statement or billing document",
        tips=(
            "Check the statement period and account number",
            "Reconcile totals against your own records",
        ),
        actions=(
            "Reconcile the balance against your records",
            "Review charges and due dates",
        ),
    ),
    "other": _Profile(
        description="Document ready for processing",
        tips=("Review the document contents before filling or filing",),
        actions=(
            "Review the document",
            "Use structured extraction for more detail",
        ),
    ),
}

NO_BACKEND_WARNING = "No authenticated back-end; result is based on keyword matching"
STAGES_FAILED_WARNING = (
    "Automated analysis failed or ran out of time; result is based on keyword matching"
)


def _matches(haystack: str, keywords: tuple[str, ...]) -> list[str]:
    return [k.strip() for k in keywords if k in haystack]


def classify_text(filename: str, text: str) -> tuple[str, str, list[str]]:
    """Return (category, title, matched keywords) for a document."""
    haystack = f"{filename}\n{text}".lower()

    legal = _matches(haystack, _LEGAL_KEYWORDS)
    if legal:
        if "will" in legal:
            title = "Will"
        elif "trust" in legal:
            title = "Trust"
        else:
            title = "Estate Plan"
        return "legal", title, legal

    tax = _matches(haystack, _TAX_KEYWORDS)
    if tax:
        return "tax", "Tax Form", tax

    financial = _matches(haystack, _FINANCIAL_KEYWORDS)
    if financial:
        return "financial", "Financial Statement", financial

    return "other", "Document", []


def heuristic_analyze(
    file_path: str | Path,
    text: str,
    fields: list[FormField] | None = None,
    page_count: int = 0,
    warning: str = NO_BACKEND_WARNING,
) -> tuple[Summary, Insights]:
    """Classify a document from its filename and text alone.

    ``warning`` tells the reader why no back-end result is available.
    """
    fields = fields or []
    category, title, matched = classify_text(Path(file_path).name, text)
    profile = _PROFILES[category]

    key_insights: list[str] = []
    if matched:
        key_insights.append(f"Detected {category} keywords: {', '.join(matched[:5])}")
    else:
        key_insights.append("No category keywords detected")
    if page_count:
        key_insights.append(f"{page_count} page{'s' if page_count != 1 else ''}")
    if fields:
        filled = sum(1 for f in fields if is_field_filled(f))
        key_insights.append(f"{filled} of {len(fields)} form fields filled")
    elif not text.strip():
        key_insights.append("No extractable text found")

    summary = Summary(
        title=title,
        description=profile.description,
        category=category,
        importance="high" if category in ("legal", "tax") else "medium",
        processing_tips=list(profile.tips),
    )
    insights = Insights(
        document_type=title,
        completeness=compute_field_completeness(fields) if fields else 0,
        key_insights=key_insights,
        next_actions=list(profile.actions),
        warnings=[warning],
    )
    return summary, insights
