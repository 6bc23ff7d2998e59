# src/translate_relay/server/settings.py

"""Process settings for the HTTP relay.

Library code never reads the environment; this is the one place that does.
A provider whose API key is empty is simply not registered.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from translate_relay.adapters.config import AdapterConfig


class Settings(BaseSettings):
    """
    Settings loaded from environment variables (or a local .env file).

    Attributes:
        openrouter_api_key: OpenRouter API key
        deepseek_api_key: DeepSeek API key
        openai_api_key: OpenAI API key
        anthropic_api_key: Anthropic API key
        default_provider: Provider used when the request names none, or an
            unavailable one (default: openrouter)
        allowed_origins: Comma-separated CORS origins (default: *)
        request_timeout: Upstream timeout in seconds (default: 30)
        max_retries: Retries when opening an upstream stream (default: 3)
        host: Bind address (default: 0.0.0.0)
        port: Bind port (default: 3000)
        log_level: Root log level (default: INFO)
    """

    openrouter_api_key: str = ""
    deepseek_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    default_provider: str = "openrouter"
    allowed_origins: str = "*"

    request_timeout: float = 30.0
    max_retries: int = 3

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("request_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be greater than 0")
        return v

    @field_validator("max_retries")
    @classmethod
    def retries_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def adapter_configs(self) -> list[AdapterConfig]:
        """One config per provider that has an API key."""
        keys = {
            "openrouter": self.openrouter_api_key,
            "deepseek": self.deepseek_api_key,
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }
        return [
            AdapterConfig(
                provider=provider,  # type: ignore[arg-type]
                api_key=key,
                timeout=self.request_timeout,
                max_retries=self.max_retries,
            )
            for provider, key in keys.items()
            if key
        ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unknown env vars


@lru_cache
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    return Settings()
