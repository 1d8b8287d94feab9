"""
OpenAI client configuration.

Centralized configuration for all OpenAI-related settings with environment
variable support.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class AdviceKind(str, Enum):
    """Supported advisory prompts."""
    MARKET = "market"      # Cycle summary with buy/sell picks
    LOOKUP = "lookup"      # Buy/sell/hold for one instrument
    QUESTION = "question"  # Free-form question from a user


# Output token budget per prompt kind
MAX_TOKENS: dict[AdviceKind, int] = {
    AdviceKind.MARKET: 600,
    AdviceKind.LOOKUP: 300,
    AdviceKind.QUESTION: 500,
}


class OpenAISettings(BaseSettings):
    """OpenAI client configuration from environment variables."""

    api_key: str = Field(default="", alias="OPENAI_API_KEY")
    default_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    request_timeout: float = Field(default=30.0, gt=0, alias="OPENAI_TIMEOUT")
    max_tokens: int = Field(default=0, ge=0, alias="OPENAI_MAX_TOKENS")  # 0 = per-kind default
    temperature: float = Field(default=0.4, ge=0, le=2, alias="OPENAI_TEMPERATURE")

    # Circuit breaker configuration
    circuit_breaker_threshold: int = Field(default=5, alias="OPENAI_CB_THRESHOLD")
    circuit_breaker_timeout: int = Field(default=60, alias="OPENAI_CB_TIMEOUT")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    def max_tokens_for(self, kind: AdviceKind) -> int:
        return self.max_tokens or MAX_TOKENS.get(kind, 400)


@lru_cache(maxsize=1)
def get_settings() -> OpenAISettings:
    """Get cached OpenAI settings instance."""
    return OpenAISettings()
