# src/backends/llm_backend.py - v1
"""Back-end implemented on top of an SDK-based LLM client."""

from __future__ import annotations

import asyncio
import logging

from docintel.backends.base_backend import BackendError, BackendTimeout, BaseBackend
from docintel.llm.base_client import BaseLLMClient
from docintel.llm.models import Message

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a precise document analyst. When asked for JSON, "
    "respond with a single JSON object and nothing else."
)

# Prompt phrases that ask for a bare JSON object
_JSON_MARKERS = ("ONLY valid JSON", "ONLY a JSON object")


class LLMBackend(BaseBackend):
    """Wrap a BaseLLMClient with a deadline and a credential check.

    Args:
        name: Back-end identifier exposed in result metadata.
        client: Provider adapter used for completions.
        api_key: Credential the client was built with; empty means the
            back-end is not authenticated.
        max_tokens: Completion length limit per call.
        temperature: Sampling temperature per call.
    """

    def __init__(
        self,
        name: str,
        client: BaseLLMClient,
        api_key: str = "",
        max_tokens: int = 2048,
        temperature: float = 0.1,
    ) -> None:
        self._name = name
        self._client = client
        self._api_key = api_key
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def name(self) -> str:
        return self._name

    async def is_authenticated(self) -> bool:
        return bool(self._api_key.strip())

    async def invoke(self, prompt: str, timeout_ms: int) -> str:
        # wait_for cancels the in-flight SDK request when the deadline passes
        try:
            response = await asyncio.wait_for(
                self._client.complete(
                    messages=[Message(role="user", content=prompt)],
                    system=_SYSTEM_PROMPT,
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    json_mode=_expects_json(prompt),
                ),
                timeout=max(timeout_ms, 1) / 1000,
            )
        except asyncio.TimeoutError as exc:
            raise BackendTimeout(self._name, timeout_ms) from exc
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise BackendError(self._name, f"{type(exc).__name__}: {exc}") from exc

        logger.debug(
            "%s answered in %d ms (%d output tokens)",
            self._name, response.latency_ms, response.output_tokens,
        )
        return response.content


def _expects_json(prompt: str) -> bool:
    """Prompts that ask for a JSON object get provider-side JSON mode."""
    return any(marker in prompt for marker in _JSON_MARKERS)
