# src/translate_relay/adapters/__init__.py

"""Upstream provider adapters for translate-relay.

Each adapter turns one provider's streaming wire format into an ordered,
pull-based sequence of raw text fragments.

Example:
    >>> from translate_relay.adapters import AdapterConfig, create_adapter
    >>>
    >>> adapter = create_adapter(AdapterConfig(provider="deepseek", api_key="sk-..."))
    >>> async for fragment in adapter.open_stream(messages, adapter.default_model):
    ...     print(fragment)
"""

from .base import Fragment, FragmentStream, Message, ProviderAdapter, Role
from .config import AdapterConfig
from .factory import create_adapter
from .registry import ProviderRegistry

__all__ = [
    # Factory
    "create_adapter",
    # Protocol
    "ProviderAdapter",
    "ProviderRegistry",
    # Config
    "AdapterConfig",
    # Types
    "Fragment",
    "FragmentStream",
    "Message",
    "Role",
]
