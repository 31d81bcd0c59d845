# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for back-end credentials, pipeline budgets and
logging options. All durations are expressed in milliseconds.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_BACKENDS: tuple[str, ...] = ("gemini", "codex", "claude")


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Back-ends ===
    primary_backend: Literal["gemini", "codex", "claude"] = "gemini"
    backend_order: str = "gemini,codex,claude"

    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    gemini_model: str = "gemini-1.5-pro"
    codex_model: str = "gpt-4o-mini"
    claude_model: str = "claude-sonnet-4-20250514"
    backend_max_tokens: int = 2048
    backend_temperature: float = 0.1

    # === Pipeline budget ===
    intelligence_budget_ms: int = 120_000
    quick_threshold_ms: int = 45_000
    stage_floor_ms: int = 2_000
    auth_check_timeout_ms: int = 5_000
    reader_timeout_ms: int = 15_000

    # Structured extraction stage
    extract_max_timeout_ms: int = 45_000
    extract_min_timeout_ms: int = 10_000
    extract_reserve_ms: int = 3_000
    extract_min_viable_ms: int = 3_000
    extract_text_max_chars: int = 16_000

    # Short summarize stage
    short_max_timeout_ms: int = 25_000
    short_min_timeout_ms: int = 8_000
    refine_max_timeout_ms: int = 15_000
    refine_enabled: bool = True
    short_text_max_chars: int = 12_000
    fields_prompt_max_chars: int = 6_000

    # === Cache ===
    cache_retention_days: int = 180

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("backend_order")
    @classmethod
    def validate_backend_order(cls, v: str) -> str:  # noqa: N805
        names = [n.strip() for n in v.split(",") if n.strip()]
        unknown = [n for n in names if n not in KNOWN_BACKENDS]
        if unknown:
            raise ValueError(f"Unknown backend(s) in backend_order: {', '.join(unknown)}")
        return ",".join(names)

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.intelligence_budget_ms <= 0:
            errors.append("INTELLIGENCE_BUDGET_MS must be > 0")

        if self.extract_min_timeout_ms > self.extract_max_timeout_ms:
            errors.append("EXTRACT_MIN_TIMEOUT_MS must be <= EXTRACT_MAX_TIMEOUT_MS")

        if self.short_min_timeout_ms > self.short_max_timeout_ms:
            errors.append("SHORT_MIN_TIMEOUT_MS must be <= SHORT_MAX_TIMEOUT_MS")

        if self.stage_floor_ms < 0:
            errors.append("STAGE_FLOOR_MS must be >= 0")

        if self.cache_retention_days <= 0:
            errors.append("CACHE_RETENTION_DAYS must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def backend_order_list(self) -> list[str]:
        """Configured back-end order with the primary always first."""
        names = [n for n in self.backend_order.split(",") if n]
        if self.primary_backend in names:
            names.remove(self.primary_backend)
        return [self.primary_backend, *names]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
