# Adapters
from .adapters import (
    AdapterConfig,
    Message,
    ProviderAdapter,
    ProviderRegistry,
    Role,
    create_adapter,
)

# Dispatcher
from .dispatcher import StreamDispatcher

# Envelope
from .envelope import Envelope, ResponseCode, envelope_for

# Errors
from .errors import AdapterError, ConfigurationError, PayloadDecodeError, RelayError

# Observability
from .observability import LoggingMetricsHook, MetricsHook, NoOpMetricsHook

# Prompts
from .prompts import Prompt, PromptsLibrary

# Request
from .request import TranslateRequest, build_messages

# Streaming
from .streaming import (
    DEFAULT_VOCABULARY,
    JsonPayloadDecoder,
    MarkerStreamParser,
    MarkerVocabulary,
)

__all__ = [
    # Adapters
    "AdapterConfig",
    "Message",
    "ProviderAdapter",
    "ProviderRegistry",
    "Role",
    "create_adapter",
    # Dispatcher
    "StreamDispatcher",
    # Envelope
    "Envelope",
    "ResponseCode",
    "envelope_for",
    # Errors
    "AdapterError",
    "ConfigurationError",
    "PayloadDecodeError",
    "RelayError",
    # Observability
    "LoggingMetricsHook",
    "MetricsHook",
    "NoOpMetricsHook",
    # Prompts
    "Prompt",
    "PromptsLibrary",
    # Request
    "TranslateRequest",
    "build_messages",
    # Streaming
    "DEFAULT_VOCABULARY",
    "JsonPayloadDecoder",
    "MarkerStreamParser",
    "MarkerVocabulary",
]
