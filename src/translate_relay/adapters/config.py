# src/translate_relay/adapters/config.py

from dataclasses import dataclass
from typing import Literal

Provider = Literal["openrouter", "deepseek", "openai", "anthropic"]


@dataclass(frozen=True)
class AdapterConfig:
    """Configuration for one provider adapter.

    Immutable. Explicit. No magic defaults from environment.
    """

    provider: Provider
    api_key: str | None = None  # Required; adapters are never built without one
    default_model: str | None = None  # Falls back to the provider's default
    base_url: str | None = None
    timeout: float = 30.0
    max_retries: int = 3
