# src/translate_relay/adapters/registry.py

import logging
from collections.abc import Iterable

from translate_relay.errors import ConfigurationError

from .base import ProviderAdapter

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Explicit name -> adapter map, built once and handed to the dispatcher.

    Names are case-insensitive.
    """

    def __init__(
        self,
        adapters: Iterable[ProviderAdapter] = (),
        default: str = "openrouter",
    ) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}
        self.default = default.lower()
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        key = adapter.name.lower()
        if key in self._adapters:
            raise ValueError(f"Provider '{adapter.name}' already registered")

        self._adapters[key] = adapter
        logger.info("Registered provider: %s", key)

    def get(self, name: str) -> ProviderAdapter:
        try:
            return self._adapters[name.lower()]
        except KeyError:
            raise KeyError(f"Provider '{name}' not found")

    def resolve(self, name: str | None = None) -> ProviderAdapter:
        """Return the requested adapter, falling back to the default one.

        Raises:
            ConfigurationError: If neither the requested nor the default
                provider is registered.
        """
        key = name.lower() if name else None
        if key is not None and key in self._adapters:
            return self._adapters[key]

        logger.warning(
            "Provider %r not found or not initialized, attempting to use default %r.",
            key or "none specified",
            self.default,
        )
        adapter = self._adapters.get(self.default)
        if adapter is None:
            logger.error(
                "Requested provider %r and default provider %r are not available.",
                key or "none specified",
                self.default,
            )
            raise ConfigurationError(
                f"AI Provider \"{key or self.default}\" is not available or configured."
            )
        return adapter

    def names(self) -> list[str]:
        return sorted(self._adapters)

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()
