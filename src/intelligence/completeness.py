# src/intelligence/completeness.py - v1
"""Deterministic completeness from form fields.

Exact and free, so whenever a document has form fields this value wins over
any estimate a back-end could make.
"""

from __future__ import annotations

import math
from typing import Iterable

from docintel.core.models import CompletenessReport, FormField

_MAX_LISTED_MISSING = 10


def is_field_filled(field: FormField) -> bool:
    """Whether ``field`` carries a value, by field type."""
    value = field.value
    field_type = (field.type or "").lower()
    if field_type == "checkbox":
        return value is True
    if value is None:
        return False
    if field_type in ("radio", "dropdown"):
        return isinstance(value, str) and bool(value.strip())
    return bool(str(value).strip())


def compute_field_completeness(fields: Iterable[FormField]) -> int:
    """Percentage of filled fields, rounded; 0 when there are no fields."""
    fields = list(fields)
    if not fields:
        return 0
    filled = sum(1 for f in fields if is_field_filled(f))
    # half-up, so 1 of 8 reads as 13 rather than banker's 12
    return math.floor(100 * filled / len(fields) + 0.5)


def build_completeness_report(fields: Iterable[FormField]) -> CompletenessReport:
    """Summarize which fields still need a value."""
    fields = list(fields)
    percentage = compute_field_completeness(fields)
    missing = [f.name for f in fields if not is_field_filled(f)]

    suggestions: list[str] = []
    if not fields:
        suggestions.append("Document has no fillable fields; review it manually")
    elif missing:
        shown = ", ".join(missing[:_MAX_LISTED_MISSING])
        more = len(missing) - _MAX_LISTED_MISSING
        suffix = f" and {more} more" if more > 0 else ""
        suggestions.append(f"Fill in: {shown}{suffix}")
        if any("sign" in name.lower() for name in missing):
            suggestions.append("Add the required signature")
        if any("date" in name.lower() for name in missing):
            suggestions.append("Include the date")

    return CompletenessReport(
        complete=bool(fields) and not missing,
        percentage=percentage,
        missing_fields=missing,
        suggestions=suggestions,
    )
