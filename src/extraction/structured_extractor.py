# src/extraction/structured_extractor.py - v1
"""Structured extraction: document text -> free-form JSON tree via a back-end.

Results are kept in the shared ExtractCache. Concurrent requests for the
same path share one back-end call through the cache's in-flight registry.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from docintel.backends.base_backend import BackendTimeout, BaseBackend
from docintel.cache.extract_cache import ExtractCache
from docintel.config.settings import Settings
from docintel.intelligence.parser import parse_json_response
from docintel.intelligence.prompts import build_extract_prompt

logger = logging.getLogger(__name__)


class ExtractionParseError(ValueError):
    """The back-end answered, but not with a JSON object."""


def _log_failure(task: asyncio.Future) -> None:
    # Retrieve the exception even when every waiter already gave up
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Extraction task failed: %s", task.exception())


class StructuredExtractor:
    """Extracts a structured tree from document text.

    Args:
        cache: Extract cache shared with every other extraction caller.
        settings: Application settings (text ceiling).
    """

    def __init__(self, cache: ExtractCache, settings: Settings) -> None:
        self._cache = cache
        self._settings = settings

    async def extract(
        self,
        file_path: str | Path,
        text: str,
        backend: BaseBackend,
        timeout_ms: int,
        template: Any | None = None,
    ) -> dict[str, Any]:
        """Return the structured extraction for ``file_path``.

        A cached extraction is returned as is; an extraction already running
        for the same path is awaited (bounded by ``timeout_ms``) instead of
        starting a second one.

        Raises:
            BackendTimeout: The extraction did not finish in time.
            BackendError: The back-end call failed.
            ExtractionParseError: The response held no JSON object.
        """
        cached = self._cache.get(file_path)
        if cached is not None:
            logger.debug("Reusing cached extraction from %s", cached.provider)
            return cached.data

        pending = self._cache.inflight.get(file_path)
        if pending is None:
            pending = asyncio.ensure_future(
                self._run(file_path, text, backend, timeout_ms, template)
            )
            self._cache.inflight.register(file_path, pending)
            pending.add_done_callback(_log_failure)
        else:
            logger.debug("Joining in-flight extraction for %s", Path(file_path).name)

        try:
            return await asyncio.wait_for(asyncio.shield(pending), timeout_ms / 1000)
        except asyncio.TimeoutError as exc:
            raise BackendTimeout(backend.name, timeout_ms) from exc

    async def _run(
        self,
        file_path: str | Path,
        text: str,
        backend: BaseBackend,
        timeout_ms: int,
        template: Any | None,
    ) -> dict[str, Any]:
        prompt = build_extract_prompt(text[: self._settings.extract_text_max_chars], template)
        raw = await backend.invoke(prompt, timeout_ms)

        parsed = parse_json_response(raw)
        if not parsed.ok or parsed.data is None:
            raise ExtractionParseError(f"Unparseable extraction from {backend.name}: {parsed.error}")

        self._cache.set(file_path, parsed.data, backend.name)
        logger.info(
            "Structured extraction cached: %d top-level keys via %s",
            len(parsed.data), backend.name,
        )
        return parsed.data
