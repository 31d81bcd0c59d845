# src/pipeline/orchestrator.py - v1
"""Intelligence orchestrator: cache, single-flight and the staged pipeline.

Stages, each tried only when the previous one failed or was skipped and
the remaining budget is above the stage floor:
  1. Structured extract -> deterministic build   (mode "extract-first")
  2. Short summarize with optional refine call   (mode "<backend>-short")
  3. Keyword heuristic, no external calls        (mode "heuristic")

Stage 1 is skipped on quick runs and when little budget is left. Stage 3
ignores the floor and always succeeds.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from docintel.backends.base_backend import BackendTimeout, BaseBackend
from docintel.cache.extract_cache import ExtractCache
from docintel.cache.fingerprint import normalize_key, stat_fingerprint
from docintel.cache.inflight import InFlightRegistry
from docintel.cache.result_cache import IntelligenceCache
from docintel.config.settings import Settings
from docintel.core.models import (
    LOCAL_PROVIDER,
    MAX_CONFIDENCE,
    MODE_EXTRACT_FIRST,
    MODE_HEURISTIC,
    CompletenessReport,
    DocumentText,
    FormField,
    Insights,
    IntelligenceMetadata,
    IntelligenceResult,
    Summary,
    short_mode,
)
from docintel.extraction.base_reader import BaseDocumentReader, DocumentAccessError
from docintel.extraction.structured_extractor import StructuredExtractor
from docintel.intelligence.budget import Budget, extract_timeout_ms, short_timeout_ms
from docintel.intelligence.completeness import (
    build_completeness_report,
    compute_field_completeness,
)
from docintel.intelligence.extract_builder import build_from_extract
from docintel.intelligence.heuristics import (
    NO_BACKEND_WARNING,
    STAGES_FAILED_WARNING,
    classify_text,
    heuristic_analyze,
)
from docintel.intelligence.normalizer import NormalizationError, normalize_intelligence
from docintel.intelligence.parser import parse_json_response
from docintel.intelligence.prompts import build_classify_prompt, build_short_summary_prompt
from docintel.intelligence.text_prep import condense_text
from docintel.logging.context import set_document_context, set_stage_context

logger = logging.getLogger(__name__)

_CLASSIFY_TEXT_MAX_CHARS = 4_000
_CLASSIFY_MAX_CHARS = 100

# (stage outcome) summary, insights, mode
_StageResult = tuple[Summary, Insights, str]


def compute_confidence(summary: Summary, insights: Insights) -> int:
    """Confidence of a generative result: 50 plus 10 per quality signal."""
    score = 50
    if summary.title and summary.title != "Document":
        score += 10
    if summary.category != "other":
        score += 10
    if len(insights.key_insights) >= 3:
        score += 10
    if len(insights.next_actions) >= 2:
        score += 10
    if insights.completeness > 0:
        score += 10
    return min(score, MAX_CONFIDENCE)


class IntelligenceOrchestrator:
    """Produces one IntelligenceResult per document, at most one at a time.

    Args:
        settings: Application settings (budgets, timeouts, ceilings).
        backends: Generative back-ends, in configured order.
        reader: Document reader for text and form fields.
        cache: Result cache. A fresh one is created if None.
        extract_cache: Extract cache shared with other extraction callers.
        extractor: Structured extractor. Built over ``extract_cache`` if None.
    """

    def __init__(
        self,
        settings: Settings,
        backends: list[BaseBackend],
        reader: BaseDocumentReader,
        cache: IntelligenceCache | None = None,
        extract_cache: ExtractCache | None = None,
        extractor: StructuredExtractor | None = None,
    ) -> None:
        self._settings = settings
        self._backends = list(backends)
        self._reader = reader
        self._cache = cache or IntelligenceCache(retention_days=settings.cache_retention_days)
        self._extract_cache = extract_cache or ExtractCache()
        self._extractor = extractor or StructuredExtractor(self._extract_cache, settings)
        self._inflight: InFlightRegistry[IntelligenceResult] = InFlightRegistry()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_intelligence(
        self,
        file_path: str | Path,
        force_refresh: bool = False,
        quick: bool = False,
        budget_ms: int | None = None,
    ) -> IntelligenceResult:
        """Return intelligence for ``file_path``, computing it if needed.

        Args:
            file_path: Document to analyze.
            force_refresh: Ignore a valid cached result.
            quick: Skip the structured extraction stage.
            budget_ms: Overall budget; defaults to the configured budget.

        Raises:
            DocumentAccessError: If the document cannot be stat'ed or read.
        """
        key = normalize_key(file_path)

        if not force_refresh:
            entry = self._cache.get(key)
            if entry is not None:
                logger.debug("Cache hit for %s", key)
                return entry.result

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Joining in-flight computation for %s", key)
            return await asyncio.shield(pending)

        if force_refresh:
            self._extract_cache.clear(key)

        # Registered before the first await so concurrent callers find it
        task = asyncio.ensure_future(self._compute(key, quick, budget_ms))
        self._inflight.register(key, task)
        return await asyncio.shield(task)

    async def classify_document(self, file_path: str | Path) -> str:
        """Short document-type label, e.g. "IRS Form 1040".

        Falls back to the keyword title when no back-end can answer.
        """
        key = normalize_key(file_path)
        self._ensure_accessible(key)
        doc = await self._read_text(key)
        _, title, _ = classify_text(Path(key).name, doc.text)

        backend = await self._select_backend()
        if backend is None:
            return title

        set_stage_context("classify", backend.name)
        prompt = build_classify_prompt(
            Path(key).name, condense_text(doc.text, _CLASSIFY_TEXT_MAX_CHARS)
        )
        try:
            raw = await backend.invoke(prompt, self._settings.short_max_timeout_ms)
        except Exception as exc:
            logger.warning("Classification failed, using keyword title: %s", exc)
            return title

        label = _first_line(raw)
        return label[:_CLASSIFY_MAX_CHARS] if label else title

    async def check_completeness(self, file_path: str | Path) -> CompletenessReport:
        """Deterministic completeness report from the document's form fields."""
        key = normalize_key(file_path)
        self._ensure_accessible(key)
        fields = await self._read_fields(key)
        return build_completeness_report(fields)

    def clear_cache(self, file_path: str | Path | None = None) -> None:
        """Drop cached results and extractions for one path, or all of them."""
        self._cache.clear(file_path)
        self._extract_cache.clear(file_path)
        logger.info("Cleared intelligence cache%s", f" for {file_path}" if file_path else "")

    def cache_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = dict(self._cache.stats())
        stats["extracts"] = self._extract_cache.stats()["size"]
        stats["in_flight"] = len(self._inflight)
        return stats

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    async def _compute(
        self, key: str, quick: bool, budget_ms: int | None
    ) -> IntelligenceResult:
        settings = self._settings
        budget = Budget(budget_ms if budget_ms is not None else settings.intelligence_budget_ms)
        set_document_context(Path(key).name)

        self._ensure_accessible(key)
        doc = await self._read_text(key)
        fields = await self._read_fields(key)

        backend = await self._select_backend()
        outcome: _StageResult | None = None
        if backend is not None:
            outcome = await self._run_generative(key, doc, fields, backend, budget, quick)
        else:
            logger.info("No authenticated backend, using heuristic analysis")

        if outcome is None:
            set_stage_context(MODE_HEURISTIC, LOCAL_PROVIDER)
            warning = NO_BACKEND_WARNING if backend is None else STAGES_FAILED_WARNING
            summary, insights = heuristic_analyze(
                key, doc.text, fields, doc.page_count, warning=warning
            )
            provider, mode = LOCAL_PROVIDER, MODE_HEURISTIC
        else:
            summary, insights, mode = outcome
            provider = backend.name  # type: ignore[union-attr]

        if fields:
            insights = insights.model_copy(
                update={"completeness": compute_field_completeness(fields)}
            )

        confidence = 0 if mode == MODE_HEURISTIC else compute_confidence(summary, insights)
        result = IntelligenceResult(
            summary=summary,
            insights=insights,
            metadata=IntelligenceMetadata(
                analyzed_at=datetime.now(timezone.utc),
                processing_time_ms=budget.elapsed_ms(),
                confidence=confidence,
                provider=provider,
                mode=mode,
            ),
        )
        self._cache.set(key, result)
        logger.info(
            "Intelligence ready via %s: confidence=%d, %d ms",
            result.metadata.path_tag, confidence, result.metadata.processing_time_ms,
        )
        return result

    async def _run_generative(
        self,
        key: str,
        doc: DocumentText,
        fields: list[FormField],
        backend: BaseBackend,
        budget: Budget,
        quick: bool,
    ) -> _StageResult | None:
        settings = self._settings

        if quick or budget.remaining_ms() <= settings.quick_threshold_ms:
            logger.info("Quick path, skipping structured extraction")
        elif budget.exceeds(settings.stage_floor_ms):
            outcome = await self._extract_stage(key, doc, fields, backend, budget)
            if outcome is not None:
                return outcome

        if budget.exceeds(settings.stage_floor_ms):
            outcome = await self._short_stage(key, doc, fields, backend, budget)
            if outcome is not None:
                return outcome
        else:
            logger.info("Budget below stage floor, skipping short summarize")
        return None

    async def _extract_stage(
        self,
        key: str,
        doc: DocumentText,
        fields: list[FormField],
        backend: BaseBackend,
        budget: Budget,
    ) -> _StageResult | None:
        settings = self._settings
        set_stage_context("extract", backend.name)
        timeout_ms = extract_timeout_ms(
            budget.remaining_ms(),
            settings.extract_max_timeout_ms,
            settings.extract_min_timeout_ms,
            settings.extract_reserve_ms,
        )
        if timeout_ms <= settings.extract_min_viable_ms:
            logger.info("Extraction timeout %d ms not viable, skipping", timeout_ms)
            return None

        try:
            tree = await self._extractor.extract(key, doc.text, backend, timeout_ms)
        except BackendTimeout as exc:
            logger.warning("Structured extraction timed out: %s", exc)
            return None
        except Exception as exc:
            logger.warning("Structured extraction failed: %s: %s", type(exc).__name__, exc)
            return None

        summary, insights = build_from_extract(tree, fields)
        return summary, insights, MODE_EXTRACT_FIRST

    async def _short_stage(
        self,
        key: str,
        doc: DocumentText,
        fields: list[FormField],
        backend: BaseBackend,
        budget: Budget,
    ) -> _StageResult | None:
        settings = self._settings
        set_stage_context("short", backend.name)
        name = Path(key).name
        text = condense_text(doc.text, settings.short_text_max_chars)

        prompt = build_short_summary_prompt(name, text, fields, settings.fields_prompt_max_chars)
        timeout_ms = short_timeout_ms(
            budget.remaining_ms(), settings.short_max_timeout_ms, settings.short_min_timeout_ms
        )
        try:
            raw = await backend.invoke(prompt, timeout_ms)
        except Exception as exc:
            logger.warning("Short summarize failed: %s", exc)
            return None

        try:
            summary, insights = _interpret(raw)
            return summary, insights, short_mode(backend.name)
        except NormalizationError as exc:
            error = str(exc)
            logger.warning("Short summarize response rejected: %s", error)

        if not (settings.refine_enabled and budget.exceeds(settings.stage_floor_ms)):
            return None

        set_stage_context("refine", backend.name)
        prompt = build_short_summary_prompt(
            name, text, fields, settings.fields_prompt_max_chars, errors=error
        )
        timeout_ms = min(settings.refine_max_timeout_ms, budget.remaining_ms())
        try:
            raw = await backend.invoke(prompt, timeout_ms)
            summary, insights = _interpret(raw)
        except Exception as exc:
            logger.warning("Refine call failed: %s", exc)
            return None
        return summary, insights, short_mode(backend.name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _select_backend(self) -> BaseBackend | None:
        """Pick the back-end to use for this run, or None when none is usable."""
        if not self._backends:
            return None

        authed = await asyncio.gather(*(self._check_auth(b) for b in self._backends))
        primary_name = self._settings.primary_backend
        primary = next((b for b in self._backends if b.name == primary_name), self._backends[0])

        usable = [b for b, ok in zip(self._backends, authed) if ok]
        if primary in usable:
            return primary
        if usable:
            logger.info("Primary backend %s unavailable, using %s", primary.name, usable[0].name)
            return usable[0]
        return None

    async def _check_auth(self, backend: BaseBackend) -> bool:
        timeout_s = self._settings.auth_check_timeout_ms / 1000
        try:
            return bool(await asyncio.wait_for(backend.is_authenticated(), timeout_s))
        except Exception as exc:
            logger.debug("Auth check failed for %s: %s", backend.name, exc)
            return False

    @staticmethod
    def _ensure_accessible(key: str) -> None:
        if stat_fingerprint(key) is None:
            raise DocumentAccessError(f"Cannot access document: {key}")

    async def _read_text(self, key: str) -> DocumentText:
        timeout_s = self._settings.reader_timeout_ms / 1000
        try:
            return await asyncio.wait_for(self._reader.extract_text(key), timeout_s)
        except DocumentAccessError:
            raise
        except Exception as exc:
            logger.warning("Text extraction failed, continuing without text: %s", exc)
            return DocumentText()

    async def _read_fields(self, key: str) -> list[FormField]:
        timeout_s = self._settings.reader_timeout_ms / 1000
        try:
            return await asyncio.wait_for(self._reader.read_form_fields(key), timeout_s)
        except DocumentAccessError:
            raise
        except Exception as exc:
            logger.warning("Form field read failed, continuing without fields: %s", exc)
            return []


def _interpret(raw: str) -> tuple[Summary, Insights]:
    parsed = parse_json_response(raw)
    if not parsed.ok or parsed.data is None:
        raise NormalizationError(parsed.error or "no JSON object in response")
    return normalize_intelligence(parsed.data)


def _first_line(raw: str) -> str:
    for line in (raw or "").splitlines():
        label = line.strip().strip("\"'`*.").strip()
        if label:
            return label
    return ""
