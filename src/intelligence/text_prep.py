# src/intelligence/text_prep.py - v1
"""Condense document text before it is sent to a back-end."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")


def condense_text(text: str, max_chars: int) -> str:
    """Drop blank and repeated lines, collapse whitespace, truncate.

    Form-heavy PDFs repeat headers and labels on every page, so
    deduplicating lines usually shrinks them far more than truncation alone.
    """
    seen: set[str] = set()
    lines: list[str] = []
    for line in text.splitlines():
        compact = _WS_RE.sub(" ", line).strip()
        if compact and compact not in seen:
            seen.add(compact)
            lines.append(compact)
    condensed = "\n".join(lines)[:max_chars]
    if text:
        logger.debug("Condensed text %d -> %d chars", len(text), len(condensed))
    return condensed
