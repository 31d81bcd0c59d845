# src/api/facade.py - v1
"""Public API facade: module-level functions over a shared orchestrator.

Usage:
    from docintel.api.facade import get_intelligence
    result = await get_intelligence("estate_plan.pdf")

The default orchestrator is built on first use from settings loaded from
.env. ``configure()`` replaces it, mostly for embedding and tests.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from docintel.backends.backend_factory import create_backends
from docintel.config.settings import Settings, load_settings
from docintel.core.models import CompletenessReport, IntelligenceResult
from docintel.extraction.reader_factory import DocumentReader
from docintel.pipeline.orchestrator import IntelligenceOrchestrator

logger = logging.getLogger(__name__)

_default: IntelligenceOrchestrator | None = None
_lock = threading.Lock()


def build_orchestrator(settings: Settings | None = None) -> IntelligenceOrchestrator:
    """Wire an orchestrator from settings: configured back-ends, default reader."""
    settings = settings or load_settings()
    return IntelligenceOrchestrator(
        settings=settings,
        backends=create_backends(settings),
        reader=DocumentReader(),
    )


def get_orchestrator() -> IntelligenceOrchestrator:
    """Return the shared orchestrator, building it on first use."""
    global _default
    with _lock:
        if _default is None:
            _default = build_orchestrator()
            logger.debug("Built default orchestrator")
        return _default


def configure(orchestrator: IntelligenceOrchestrator | None) -> None:
    """Install ``orchestrator`` as the shared one (None resets to lazy default)."""
    global _default
    with _lock:
        _default = orchestrator


async def get_intelligence(
    file_path: str | Path,
    force_refresh: bool = False,
    quick: bool = False,
    budget_ms: int | None = None,
) -> IntelligenceResult:
    """Analyze a document and return its intelligence.

    Raises:
        DocumentAccessError: If the document cannot be stat'ed or read.
    """
    return await get_orchestrator().get_intelligence(
        file_path, force_refresh=force_refresh, quick=quick, budget_ms=budget_ms
    )


async def classify_document(file_path: str | Path) -> str:
    return await get_orchestrator().classify_document(file_path)


async def check_completeness(file_path: str | Path) -> CompletenessReport:
    return await get_orchestrator().check_completeness(file_path)


def clear_cache(file_path: str | Path | None = None) -> None:
    get_orchestrator().clear_cache(file_path)


def cache_stats() -> dict[str, Any]:
    return get_orchestrator().cache_stats()
