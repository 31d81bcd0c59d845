# src/backends/backend_factory.py - v1
"""Factory for the configured generative back-ends."""

from __future__ import annotations

import logging

from docintel.backends.base_backend import BaseBackend
from docintel.backends.llm_backend import LLMBackend
from docintel.config.settings import Settings
from docintel.llm.client_factory import create_llm_client, provider_api_key

logger = logging.getLogger(__name__)

# Back-end name -> (LLM provider, settings attribute holding the model).
BACKEND_PROVIDERS: dict[str, tuple[str, str]] = {
    "gemini": ("google", "gemini_model"),
    "codex": ("openai", "codex_model"),
    "claude": ("anthropic", "claude_model"),
}


def create_backend(name: str, settings: Settings) -> BaseBackend:
    """Build one back-end by name.

    Raises:
        ValueError: If ``name`` is not a known back-end.
    """
    if name not in BACKEND_PROVIDERS:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {', '.join(sorted(BACKEND_PROVIDERS))}"
        )
    provider, model_attr = BACKEND_PROVIDERS[name]
    client = create_llm_client(provider, getattr(settings, model_attr), settings)
    return LLMBackend(
        name=name,
        client=client,
        api_key=provider_api_key(provider, settings),
        max_tokens=settings.backend_max_tokens,
        temperature=settings.backend_temperature,
    )


def create_backends(settings: Settings) -> list[BaseBackend]:
    """Build every configured back-end, primary first."""
    backends = [create_backend(name, settings) for name in settings.backend_order_list]
    logger.debug("Configured backends: %s", ", ".join(b.name for b in backends))
    return backends
