from collections.abc import AsyncIterator
from typing import Any

import pytest

from translate_relay.adapters.base import Fragment, Message
from translate_relay.adapters.registry import ProviderRegistry
from translate_relay.dispatcher import StreamDispatcher
from translate_relay.errors import AdapterError
from translate_relay.prompts.prompt import Prompt
from translate_relay.streaming.markers import MarkerVocabulary

# Single-section vocabulary with ``[SEC_A]`` / ``[SEC_A_END]`` markers.
SEC_VOCABULARY = MarkerVocabulary(
    {
        "A": ("[SEC_A]", "[SEC_A_END]"),
        "B": ("[SEC_B]", "[SEC_B_END]"),
    },
    payload_marker="[INFO]",
)


class ScriptedAdapter:
    """Adapter that replays a fixed list of fragments, optionally failing."""

    def __init__(
        self,
        fragments: list[Fragment],
        *,
        name: str = "scripted",
        default_model: str = "scripted-model",
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.default_model = default_model
        self.fragments = fragments
        self.error = error
        self.calls: list[tuple[list[Message], str, dict[str, Any] | None]] = []
        self.pulled = 0
        self.closed = False
        self.client_closed = False

    async def open_stream(
        self,
        messages: list[Message],
        model: str,
        options: dict[str, Any] | None = None,
    ) -> AsyncIterator[Fragment]:
        self.calls.append((messages, model, options))
        try:
            for fragment in self.fragments:
                self.pulled += 1
                yield fragment
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True

    async def aclose(self) -> None:
        self.client_closed = True


@pytest.fixture
def simple_prompt() -> Prompt:
    return Prompt(
        name="test",
        version="1.0",
        description="test prompt",
        inputs={"input_text": "", "context_block": "", "target_language": ""},
        template="Translate $input_text to $target_language. $context_block",
    )


@pytest.fixture
def make_dispatcher(simple_prompt: Prompt):
    def _make(*adapters: ScriptedAdapter, default: str = "scripted", **kwargs: Any):
        registry = ProviderRegistry(adapters, default=default)
        kwargs.setdefault("vocabulary", SEC_VOCABULARY)
        return StreamDispatcher(registry, prompt=simple_prompt, **kwargs)

    return _make


def adapter_error(message: str = "boom") -> AdapterError:
    return AdapterError("scripted", message)
