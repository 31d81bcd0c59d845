# src/backends/base_backend.py - v1
"""Capability interface every generative back-end implements.

The orchestrator is written once against this interface; which concrete
back-end it talks to is decided at runtime from authentication state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BackendError(Exception):
    """A back-end invocation failed for a reason other than its deadline."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class BackendTimeout(BackendError):
    """A back-end invocation exceeded its allotted timeout and was cancelled."""

    def __init__(self, backend: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(backend, f"timed out after {timeout_ms} ms")


class BaseBackend(ABC):
    """Prompt-in, text-out generative service."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Back-end identifier (gemini, codex, claude)."""

    @abstractmethod
    async def is_authenticated(self) -> bool:
        """Whether the back-end can currently accept requests."""

    @abstractmethod
    async def invoke(self, prompt: str, timeout_ms: int) -> str:
        """Send ``prompt`` and return the raw response text.

        Raises:
            BackendTimeout: The call did not finish within ``timeout_ms``.
            BackendError: Any other failure of the underlying service.
        """
