# src/logging/context.py - v1
"""Contextual logging support: attach document, provider and stage to log records.

Each orchestration runs in its own asyncio task, which copies the current
context on creation, so values set inside one computation never leak into
concurrent computations for other documents.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_document: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document", default=None
)
_provider: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "provider", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    document: str | None = None
    provider: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document=_document.get(),
        provider=_provider.get(),
        stage=_stage.get(),
    )


def set_document_context(document: str) -> None:
    """Set document-level context (called once per orchestration)."""
    _document.set(document)


def set_stage_context(stage: str, provider: str | None = None) -> None:
    """Set stage-level context (called as the pipeline advances)."""
    _stage.set(stage)
    if provider is not None:
        _provider.set(provider)


def clear_context() -> None:
    """Reset all context variables."""
    _document.set(None)
    _provider.set(None)
    _stage.set(None)
