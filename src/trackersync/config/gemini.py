"""Gemini extraction service configuration values."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .env import optional_env_var, require_env_vars
from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/"
GEMINI_DEFAULT_MODEL = "gemini-2.5-pro"
GEMINI_TIMEOUT_SECONDS = 120.0
GEMINI_TEMPERATURE = 0.1
RECONCILE_MAX_OUTPUT_TOKENS = 8192
CLASSIFY_MAX_OUTPUT_TOKENS = 4096


@dataclass(frozen=True, slots=True)
class GenerationSettings:
    """Fixed sampling configuration sent with every extraction request."""

    temperature: float = GEMINI_TEMPERATURE
    max_output_tokens: int = RECONCILE_MAX_OUTPUT_TOKENS


@dataclass(frozen=True)
class GeminiConfig:
    """Holds Gemini API configuration values."""

    api_key: str
    model: str
    resilience: ResilienceConfig
    generation: GenerationSettings = GenerationSettings()

    def with_max_output_tokens(self, max_output_tokens: int) -> GeminiConfig:
        return replace(
            self,
            generation=replace(self.generation, max_output_tokens=max_output_tokens),
        )


def get_gemini_config(*, resilience: ResilienceConfig | None = None) -> GeminiConfig:
    values = require_env_vars(("GEMINI_API_KEY",))
    model = optional_env_var("GEMINI_MODEL", GEMINI_DEFAULT_MODEL) or GEMINI_DEFAULT_MODEL
    base_url = optional_env_var("GEMINI_BASE_URL", GEMINI_BASE_URL) or GEMINI_BASE_URL
    return GeminiConfig(
        api_key=values["GEMINI_API_KEY"],
        model=model,
        resilience=resilience
        or ResilienceConfig(
            name="gemini",
            base_url=base_url,
            timeout_seconds=GEMINI_TIMEOUT_SECONDS,
            retry=NO_RETRY,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        ),
    )
