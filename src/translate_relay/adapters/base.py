# src/translate_relay/adapters/base.py

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union

from translate_relay.streaming.events import ParsingError


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single message sent upstream.

    Immutable. Provider-agnostic.
    """

    role: Role
    content: str


# Raw text fragments, interleaved with recoverable wire-format errors.
Fragment = Union[str, ParsingError]
FragmentStream = AsyncGenerator[Fragment, None]


class ProviderAdapter(Protocol):
    """Protocol for upstream provider adapters.

    Design principles:
    - Order preserving: fragments are yielded exactly as the provider sends them
    - Pull based: the stream is lazy, finite and not restartable
    - Transport only: retries happen before the first fragment, never after
    - No leakage: provider SDK objects never escape the adapter
    """

    name: str
    default_model: str

    def open_stream(
        self,
        messages: list[Message],
        model: str,
        options: dict[str, Any] | None = None,
    ) -> FragmentStream:
        """Open one streaming completion.

        Args:
            messages: Complete conversation to send.
            model: Provider model identifier.
            options: Extra provider parameters (temperature, max_tokens...).

        Yields:
            Text fragments in arrival order, or ``ParsingError`` for a single
            malformed low-level chunk that was skipped.

        Raises:
            AdapterError: On authentication, network, rate-limit or
                unrecoverable framing failures. Ends the stream.

        Note:
            Stop iterating (``aclose()``) to cancel; the upstream connection
            is released.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP client."""
        ...
