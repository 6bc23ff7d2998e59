# src/translate_relay/adapters/factory.py

from translate_relay.errors import ConfigurationError
from translate_relay.observability.base import MetricsHook, NoOpMetricsHook

from .base import ProviderAdapter
from .config import AdapterConfig


def create_adapter(
    config: AdapterConfig,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ProviderAdapter:
    """Create a provider adapter from config.

    Args:
        config: Adapter configuration specifying provider, key, etc.
        metrics_hook: Optional metrics hook for observability.

    Returns:
        Configured ProviderAdapter implementation.

    Raises:
        ConfigurationError: If the provider has no API key.
        ValueError: If provider is unknown.

    Example:
        >>> config = AdapterConfig(provider="deepseek", api_key="sk-...")
        >>> adapter = create_adapter(config)
        >>> stream = adapter.open_stream(messages, adapter.default_model)
    """
    if config.provider not in ("openrouter", "deepseek", "openai", "anthropic"):
        raise ValueError(f"Unknown provider: {config.provider}")

    if not config.api_key:
        raise ConfigurationError(f"Provider '{config.provider}' has no API key")

    if config.provider == "openrouter":
        from .openrouter import OpenRouterAdapter

        return OpenRouterAdapter(
            api_key=config.api_key,
            default_model=config.default_model,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            metrics_hook=metrics_hook,
        )

    if config.provider in ("deepseek", "openai"):
        from .openai import OpenAICompatibleAdapter

        return OpenAICompatibleAdapter(
            name=config.provider,
            api_key=config.api_key,
            default_model=config.default_model,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            metrics_hook=metrics_hook,
        )

    from .anthropic import AnthropicAdapter

    return AnthropicAdapter(
        api_key=config.api_key,
        default_model=config.default_model,
        timeout=config.timeout,
        max_retries=config.max_retries,
        metrics_hook=metrics_hook,
    )
