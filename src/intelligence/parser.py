# src/intelligence/parser.py - v1
"""Recover a JSON object from free-text model output.

Two phases, each usable on its own:
  1. ``normalize_response_text``: take the interior of a fenced code block
     when one is present, then rewrite Python literals (True/False/None)
     to their JSON spelling.
  2. ``extract_balanced_object``: from the first ``{`` scan forward with a
     brace-depth counter that ignores braces inside strings (escaped quotes
     included) and cut at the matching ``}``.
Anything after the closing brace is ignored. ``parse_json_response`` runs
both and reports failure through ``ParseResult`` instead of raising.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_PY_LITERALS = (
    (re.compile(r"\bTrue\b"), "true"),
    (re.compile(r"\bFalse\b"), "false"),
    (re.compile(r"\bNone\b"), "null"),
)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing a model response."""

    ok: bool
    data: dict[str, Any] | None = None
    error: str = ""

    @classmethod
    def failure(cls, error: str) -> ParseResult:
        return cls(ok=False, error=error)


def normalize_response_text(raw: str) -> str:
    """Phase 1: unwrap a fenced block and repair Python-style literals."""
    fence = _FENCE_RE.search(raw)
    text = fence.group(1) if fence else raw
    for pattern, replacement in _PY_LITERALS:
        text = pattern.sub(replacement, text)
    return text


def extract_balanced_object(text: str) -> str | None:
    """Phase 2: return the first brace-balanced ``{...}`` span, or None."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def parse_json_response(raw: str | None) -> ParseResult:
    """Extract and decode the first JSON object embedded in ``raw``."""
    if not raw or not raw.strip():
        return ParseResult.failure("Empty response")

    candidate = extract_balanced_object(normalize_response_text(raw))
    if candidate is None:
        return ParseResult.failure("No JSON object found")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseResult.failure(f"Invalid JSON: {exc.msg} at position {exc.pos}")

    if not isinstance(data, dict):
        return ParseResult.failure("Top-level JSON value is not an object")
    return ParseResult(ok=True, data=data)
