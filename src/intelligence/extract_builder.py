# src/intelligence/extract_builder.py - v1
"""Derive intelligence from a structured extraction without another model call.

The extraction is an arbitrary nested tree whose key names vary from one
back-end run to the next, so lookups match on path substrings rather than
exact keys. Every lookup is ordered: the first group of tokens that hits a
non-empty value wins.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from docintel.core.models import (
    MAX_KEY_INSIGHTS,
    MAX_NEXT_ACTIONS,
    MAX_PROCESSING_TIPS,
    MAX_WARNINGS,
    FormField,
    Insights,
    Summary,
)
from docintel.intelligence.completeness import compute_field_completeness

logger = logging.getLogger(__name__)

FlatItem = tuple[str, Any]

_SEGMENT_SPLIT_RE = re.compile(r"[^a-z0-9]+")
_GENERIC_VALUE_MAX_CHARS = 80
_GENERIC_INSIGHT_COUNT = 5

_CATEGORY_SIGNALS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("legal", ("trust", "executor", "guardianship", "will")),
    ("tax", ("irs", "schedule", "1040", "k-1")),
    ("financial", ("invoice", "statement", "account")),
)

_DEFAULT_TITLES = {
    "legal": "Estate Plan",
    "tax": "Tax Form",
    "financial": "Financial Statement",
    "other": "Document",
}

_DESCRIPTIONS = {
    "legal": "Estate planning document naming fiduciaries, guardians and distributions",
    "tax": "Tax document with identifiers, income and filing details",
    "financial": "Financial statement with account activity and balances",
    "other": "Document with structured data extracted",
}

_TIPS = {
    "legal": [
        "Confirm named roles (executor, trustee, guardians) are accurate",
        "Store originals in a fireproof safe; share copies with executor and trustee",
    ],
    "tax": [
        "Verify SSN/EIN and filing year",
        "Keep supporting documents with the return",
    ],
    "financial": [
        "Check the statement period and account number",
        "Reconcile totals against your own records",
    ],
    "other": ["Review the extracted details for accuracy"],
}


# === FLATTENING ===


def flatten(tree: Any, prefix: str = "") -> list[FlatItem]:
    """Flatten nested dicts/lists into ``(dotted.path, scalar)`` pairs."""
    items: list[FlatItem] = []
    if isinstance(tree, dict):
        for key, value in tree.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            items.extend(flatten(value, path))
    elif isinstance(tree, (list, tuple)):
        for index, value in enumerate(tree):
            items.extend(flatten(value, f"{prefix}.{index}" if prefix else str(index)))
    elif tree is not None:
        items.append((prefix, tree))
    return items


def _token_hits(path: str, token: str) -> bool:
    # Short tokens (ein, ssn, agi) must be a whole path segment
    if len(token) <= 3:
        return token in _SEGMENT_SPLIT_RE.split(path)
    return token in path


def lookup(
    flat: Iterable[FlatItem],
    groups: Iterable[tuple[str, ...]],
    exclude: tuple[str, ...] = (),
) -> str | None:
    """First non-empty value whose path contains every token of a group."""
    flat = list(flat)
    for group in groups:
        for path, value in flat:
            lowered = path.lower()
            if not all(_token_hits(lowered, t) for t in group):
                continue
            if any(_token_hits(lowered, t) for t in exclude):
                continue
            text = str(value).strip()
            if text and not isinstance(value, bool):
                return text
    return None


def count_list(tree: Any, token: str) -> int:
    """Length of the first list found under a key containing ``token``."""
    if isinstance(tree, dict):
        for key, value in tree.items():
            if token in str(key).lower() and isinstance(value, list):
                return len(value)
        for value in tree.values():
            found = count_list(value, token)
            if found:
                return found
    elif isinstance(tree, list):
        for value in tree:
            found = count_list(value, token)
            if found:
                return found
    return 0


def detect_category(tree: Any) -> str:
    """Category from substring signals in the serialized tree."""
    serialized = json.dumps(tree, default=str).lower()
    for category, signals in _CATEGORY_SIGNALS:
        if any(signal in serialized for signal in signals):
            return category
    return "other"


# === MASKING ===


def _digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def mask_ein(value: str) -> str:
    """Replace every digit but the last four, keeping separators."""
    total = len(_digits(value))
    if total <= 4:
        return value
    seen = 0
    out: list[str] = []
    for ch in value:
        if ch.isdigit():
            seen += 1
            out.append(ch if seen > total - 4 else "*")
        else:
            out.append(ch)
    return "".join(out)


def mask_ssn(value: str) -> str:
    """Show only the last four digits of an SSN."""
    digits = _digits(value)
    if len(digits) < 4:
        return "***-**-****"
    return f"***-**-{digits[-4:]}"


def mask_account(value: str) -> str:
    digits = _digits(value)
    if len(digits) < 4:
        return "****"
    return f"****{digits[-4:]}"


def _mask_for_path(path: str, value: str) -> str:
    lowered = path.lower()
    if _token_hits(lowered, "ssn") or "social_security" in lowered:
        return mask_ssn(value)
    if any(_token_hits(lowered, t) for t in ("ein", "tin")):
        return mask_ein(value)
    if any(t in lowered for t in ("account_number", "routing")) or _token_hits(lowered, "acct"):
        return mask_account(value)
    return value


# === PER-CATEGORY BUILDERS ===


def _build_legal(flat: list[FlatItem]) -> tuple[list[str], list[str], list[str]]:
    insights: list[str] = []
    actions = [
        "Verify beneficiaries and distribution schedule",
        "Confirm executor and successor trustee are willing to serve",
    ]
    warnings: list[str] = []

    trust_name = lookup(flat, [("trust", "name"), ("trust_title",)])
    if trust_name:
        insights.append(f"Trust: {trust_name}")

    trust_ein = lookup(flat, [("trust", "ein"), ("ein",), ("tax", "id")])
    if trust_ein:
        insights.append(f"Trust EIN: {mask_ein(trust_ein)}")

    ssn = lookup(flat, [("ssn",), ("social", "security")])
    if ssn:
        insights.append(f"Grantor SSN: {mask_ssn(ssn)}")

    executor = lookup(
        flat, [("executor", "primary"), ("executor", "name"), ("executor",)],
        exclude=("alternate", "successor", "backup", "secondary"),
    )
    alt_executor = lookup(
        flat, [("executor", "alternate"), ("executor", "successor"), ("executor", "backup")]
    )
    if executor:
        insights.append(
            f"Executor: {executor}; Alternate: {alt_executor}" if alt_executor
            else f"Executor: {executor}"
        )
        if not alt_executor:
            actions.append("Name an alternate executor")

    trustee = lookup(flat, [("successor_trustee",), ("successor", "trustee")])
    if trustee:
        insights.append(f"Successor trustee: {trustee}")

    guardian = lookup(
        flat, [("guardian", "primary"), ("guardian", "name"), ("guardian",)],
        exclude=("alternate", "backup", "secondary", "successor"),
    )
    alt_guardian = lookup(
        flat, [("guardian", "alternate"), ("guardian", "backup"), ("guardian", "secondary")]
    )
    if guardian:
        insights.append(
            f"Guardian: {guardian}; Alternate guardian: {alt_guardian}" if alt_guardian
            else f"Guardian: {guardian}"
        )
        if not alt_guardian:
            actions.append("Name an alternate guardian")

    prepared = lookup(
        flat, [("prepared_date",), ("prepared", "date"), ("date_prepared",),
               ("execution_date",), ("signed", "date")],
    )
    if prepared:
        insights.append(f"Prepared on {prepared}")
    else:
        warnings.append("No preparation or signing date found")

    charity = lookup(flat, [("charit",), ("donation",)])
    if charity:
        insights.append(f"Charitable giving: {charity}")

    distribution = lookup(flat, [("distribution",)])
    if distribution:
        insights.append(f"Distributions: {distribution}")

    actions.append("Review every 3 years or after major life events")
    return insights, actions, warnings


def _build_financial(
    flat: list[FlatItem], tree: Any
) -> tuple[list[str], list[str], list[str]]:
    insights: list[str] = []
    actions = [
        "Reconcile the balance against your records",
        "Review transactions for unfamiliar charges",
    ]
    warnings: list[str] = []

    account = lookup(
        flat, [("account_number",), ("account", "number"), ("account_no",), ("acct",)]
    )
    if account:
        insights.append(f"Account: {mask_account(account)}")

    period = lookup(
        flat, [("statement_period",), ("period",), ("statement", "date"), ("invoice", "date")]
    )
    if period:
        insights.append(f"Period: {period}")

    balance = lookup(
        flat, [("ending_balance",), ("closing_balance",), ("new_balance",), ("balance",),
               ("total_due",), ("amount_due",)],
    )
    if balance:
        insights.append(f"Balance: {balance}")

    transactions = count_list(tree, "transaction")
    if transactions:
        insights.append(f"{transactions} transaction{'s' if transactions != 1 else ''}")

    fees = lookup(flat, [("fees",), ("fee",)])
    if fees:
        insights.append(f"Fees: {fees}")
        actions.append("Review fees charged this period")

    interest = lookup(flat, [("interest",)])
    if interest:
        insights.append(f"Interest: {interest}")

    return insights, actions, warnings


def _build_tax(flat: list[FlatItem], tree: Any) -> tuple[list[str], list[str], list[str]]:
    insights: list[str] = []
    actions = [
        "Verify SSN/EIN and filing year",
        "Confirm income figures against W-2/1099 records",
    ]
    warnings: list[str] = []

    year = lookup(flat, [("tax_year",), ("tax", "year"), ("year",)])
    if year:
        insights.append(f"Tax year: {year}")
    else:
        warnings.append("Tax year not found")

    ein = lookup(flat, [("ein",), ("employer", "identification")])
    if ein:
        insights.append(f"EIN: {mask_ein(ein)}")

    ssn = lookup(flat, [("ssn",), ("social", "security")])
    if ssn:
        insights.append(f"SSN: {mask_ssn(ssn)}")

    income = lookup(
        flat, [("total_income",), ("adjusted_gross_income",), ("agi",), ("wages",),
               ("ordinary", "income"), ("income",)],
    )
    if income:
        insights.append(f"Income: {income}")

    deductions = count_list(tree, "deduction")
    if deductions:
        insights.append(f"{deductions} deduction{'s' if deductions != 1 else ''} listed")

    refund = lookup(flat, [("refund",)])
    owed = lookup(flat, [("amount_owed",), ("amount", "owe"), ("balance_due",), ("owed",)])
    if refund:
        insights.append(f"Refund: {refund}")
    if owed:
        insights.append(f"Amount owed: {owed}")
        actions.append("Arrange payment of the amount owed before the deadline")

    actions.append("File or retain by the applicable deadline")
    return insights, actions, warnings


def _generic_insights(flat: list[FlatItem]) -> list[str]:
    """First few short flattened values, labelled by their leaf key."""
    insights: list[str] = []
    for path, value in flat:
        text = str(value).strip()
        if not text or len(text) > _GENERIC_VALUE_MAX_CHARS or isinstance(value, bool):
            continue
        leaf = path.rsplit(".", 1)[-1]
        if leaf.isdigit() and "." in path:
            leaf = path.rsplit(".", 2)[-2]
        label = leaf.replace("_", " ").strip().capitalize() or "Value"
        insights.append(f"{label}: {_mask_for_path(path, text)}")
        if len(insights) >= _GENERIC_INSIGHT_COUNT:
            break
    return insights


def _dedupe(items: Iterable[str]) -> list[str]:
    out: list[str] = []
    for item in items:
        if item and item not in out:
            out.append(item)
    return out


def build_from_extract(
    tree: Any,
    fields: list[FormField] | None = None,
) -> tuple[Summary, Insights]:
    """Build Summary and Insights from a structured extraction.

    Never returns empty key insights or next actions.
    """
    fields = fields or []
    flat = flatten(tree)
    category = detect_category(tree)

    if category == "legal":
        insights, actions, warnings = _build_legal(flat)
    elif category == "financial":
        insights, actions, warnings = _build_financial(flat, tree)
    elif category == "tax":
        insights, actions, warnings = _build_tax(flat, tree)
    else:
        insights, actions, warnings = [], ["Review the extracted details"], []

    if not insights:
        insights = _generic_insights(flat)
    if not insights:
        insights = ["Structured data extracted from document"]

    title = lookup(flat, [("document_title",), ("title",)]) or _DEFAULT_TITLES[category]
    document_type = lookup(flat, [("document_type",), ("doc_type",), ("form_type",)]) or title

    logger.debug(
        "Built intelligence from extract: category=%s, %d flattened values, %d insights",
        category, len(flat), len(insights),
    )

    summary = Summary(
        title=title,
        description=_DESCRIPTIONS[category],
        category=category,
        importance="high" if category in ("legal", "tax") else "medium",
        processing_tips=_TIPS[category][:MAX_PROCESSING_TIPS],
    )
    result_insights = Insights(
        document_type=document_type,
        completeness=compute_field_completeness(fields) if fields else 0,
        key_insights=_dedupe(insights)[:MAX_KEY_INSIGHTS],
        next_actions=_dedupe(actions)[:MAX_NEXT_ACTIONS],
        warnings=_dedupe(warnings)[:MAX_WARNINGS],
    )
    return summary, result_insights
