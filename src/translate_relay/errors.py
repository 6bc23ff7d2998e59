# src/translate_relay/errors.py


class RelayError(Exception):
    """Base class for every error raised by translate-relay."""


class ConfigurationError(RelayError):
    """A provider is unknown, unconfigured or unavailable.

    Always raised before any upstream network call is made.
    """


class AdapterError(RelayError):
    """The upstream provider failed while opening or reading a stream."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class PayloadDecodeError(RelayError):
    """An inline structured payload could not be decoded."""
