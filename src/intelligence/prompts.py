# src/intelligence/prompts.py - v1
"""Prompt templates for the generative stages.

Templates live in ``prompts/*.txt`` and are filled with ``str.format``; the
JSON shape and the few-shot example are serialized here so the templates
never need escaped braces.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from docintel.core.models import FormField

_PROMPT_DIR = Path(__file__).parent / "prompts"

RESPONSE_SHAPE = """{
  "summary": {
    "title": "string",
    "description": "string",
    "category": "tax|legal|financial|business|personal|other",
    "importance": "critical|high|medium|low",
    "processingTips": ["string", "string"]
  },
  "insights": {
    "documentType": "string",
    "completeness": 0-100,
    "keyInsights": ["string", "string"],
    "nextActions": ["string", "string"],
    "warnings": ["string"]
  }
}"""

_EXAMPLE_EXTRACT: dict[str, Any] = {
    "document_title": "Estate Plan for John and Jane Doe",
    "document_type": "Estate Plan",
    "will": {
        "executor": {"primary": "Jane Doe"},
        "guardianship": {"primary_guardian": "Nick Doe"},
    },
    "trust": {
        "name": "The Doe Family Revocable Living Trust",
        "successor_trustee": "Nick Doe",
    },
    "prepared_date": "2021-10-16",
}

_EXAMPLE_OUTPUT: dict[str, Any] = {
    "summary": {
        "title": "Family Estate Plan (Revocable Trust + Will)",
        "description": (
            "Estate plan with a revocable living trust and will; executor, "
            "guardian and successor trustee named."
        ),
        "category": "legal",
        "importance": "high",
        "processingTips": [
            "Confirm successor trustee and alternate executor are accurate",
            "Store originals in a fireproof safe; share copies with executor and trustee",
        ],
    },
    "insights": {
        "documentType": "Estate planning package (trust + will)",
        "completeness": 85,
        "keyInsights": [
            "Executor: Jane Doe; Guardian: Nick Doe",
            "Successor trustee: Nick Doe",
            "Prepared on 2021-10-16",
        ],
        "nextActions": [
            "Verify beneficiaries and distribution schedule",
            "Review every 3 years or after major life events",
        ],
        "warnings": [],
    },
}


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Read and cache a prompt template by file stem."""
    return (_PROMPT_DIR / f"{name}.txt").read_text(encoding="utf-8")


def few_shot_examples() -> str:
    return (
        "Example input (extracted JSON) and output (intelligence):\n"
        f"EXTRACT_JSON: {json.dumps(_EXAMPLE_EXTRACT)}\n"
        f"EXPECTED_JSON: {json.dumps(_EXAMPLE_OUTPUT)}\n"
    )


def format_fields(fields: list[FormField], max_chars: int) -> str:
    """Compact ``name:type:value`` listing of form fields."""
    if not fields:
        return ""
    payload = json.dumps(
        [{"name": f.name, "type": f.type, "value": f.value} for f in fields],
        default=str,
    )
    return f"Form fields (name:type:value): {payload[:max_chars]}\n\n"


def build_short_summary_prompt(
    file_name: str,
    text: str,
    fields: list[FormField],
    fields_max_chars: int,
    errors: str | None = None,
) -> str:
    """Prompt asking for the full intelligence JSON from condensed text."""
    errors_block = ""
    if errors:
        errors_block = (
            f"\n\nYour previous output failed validation due to: {errors}. "
            "Produce corrected JSON now."
        )
    return load_prompt("short_summary").format(
        examples=few_shot_examples(),
        file_name=file_name,
        fields_block=format_fields(fields, fields_max_chars),
        text=text or "(no extractable text)",
        shape=RESPONSE_SHAPE,
        errors_block=errors_block,
    )


def build_extract_prompt(text: str, template: Any | None = None) -> str:
    """Prompt asking for a free-form structured extraction as JSON."""
    template_block = ""
    if template:
        template_block = (
            f"Use this shape as guidance: {json.dumps(template, default=str)[:4000]}\n"
        )
    return load_prompt("structured_extract").format(template_block=template_block, text=text)


def build_classify_prompt(file_name: str, text: str) -> str:
    return load_prompt("classify").format(file_name=file_name, text=text)
