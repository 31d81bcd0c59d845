# src/llm/base_client.py - v1
"""Abstract LLM client interface shared by all provider adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docintel.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.1,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Text completion.

        ``json_mode`` asks the provider to constrain output to a JSON object
        where the API supports it; callers still parse defensively.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, google)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name requests are sent to."""
