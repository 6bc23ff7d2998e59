# src/translate_relay/dispatcher.py

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from time import monotonic
from typing import Any

from translate_relay.adapters.base import ProviderAdapter
from translate_relay.adapters.registry import ProviderRegistry
from translate_relay.envelope import Envelope, envelope_for
from translate_relay.errors import AdapterError, ConfigurationError
from translate_relay.observability import names
from translate_relay.observability.base import MetricsHook, NoOpMetricsHook
from translate_relay.prompts.prompt import Prompt
from translate_relay.prompts.prompts_library import PromptsLibrary
from translate_relay.request import TranslateRequest, build_messages
from translate_relay.streaming.events import (
    Done,
    DoneStatus,
    ErrorOrigin,
    Event,
    ParsingError,
    StreamError,
)
from translate_relay.streaming.markers import (
    DEFAULT_VOCABULARY,
    MarkerVocabulary,
    PayloadDecoder,
)
from translate_relay.streaming.parser import MarkerStreamParser

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = ("translate_markers", "1.0")


class StreamDispatcher:
    """Runs one isolated pipeline per request.

    adapter fragments -> marker parser -> events -> envelopes

    Guarantees:
    - Events leave in fragment arrival order
    - Exactly one ``done`` event per request, always last
    - Closing the returned iterator stops pulling from the adapter and
      emits nothing further
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        prompt: Prompt | None = None,
        vocabulary: MarkerVocabulary = DEFAULT_VOCABULARY,
        decoder: PayloadDecoder | None = None,
        options: dict[str, Any] | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.registry = registry
        self._prompt = prompt or PromptsLibrary().get(*DEFAULT_PROMPT)
        self._vocabulary = vocabulary
        self._decoder = decoder
        self._options = dict(options or {})
        self.metrics_hook = metrics_hook

    def resolve(self, request: TranslateRequest) -> tuple[ProviderAdapter, str]:
        """Pick the adapter and model for a request.

        A requested model is only honoured when the requested provider was
        actually found; after a fallback the default's own model is used.

        Raises:
            ConfigurationError: If no usable provider is configured.
        """
        adapter = self.registry.resolve(request.provider)
        fell_back = (
            request.provider is not None
            and request.provider.lower() != adapter.name.lower()
        )
        if request.model and not fell_back:
            model = request.model
        else:
            model = adapter.default_model
            logger.info(
                "No usable model specified for %s, using default: %s",
                adapter.name,
                model,
            )
        return adapter, model

    async def stream(self, request: TranslateRequest) -> AsyncIterator[Envelope]:
        """Envelopes for one request, ready for the transport."""
        async with aclosing(self.events(request)) as events:
            async for event in events:
                yield envelope_for(event)

    async def events(self, request: TranslateRequest) -> AsyncIterator[Event]:
        """Typed events for one request."""
        self.metrics_hook.increment(names.RELAY_REQUESTS_TOTAL)
        try:
            adapter, model = self.resolve(request)
        except ConfigurationError as exc:
            self._record_error("configuration")
            yield StreamError(str(exc), ErrorOrigin.CONFIGURATION)
            yield Done(DoneStatus.FAILED)
            return

        labels = {"provider": adapter.name, "model": model}
        parser = MarkerStreamParser(
            self._vocabulary, self._decoder, metrics_hook=self.metrics_hook
        )
        messages = build_messages(request, self._prompt)
        failure: StreamError | None = None
        start = monotonic()
        first_fragment = True

        logger.info("Calling %s provider with model %s.", adapter.name, model)
        fragments = adapter.open_stream(messages, model, dict(self._options))
        try:
            async for fragment in fragments:
                if first_fragment:
                    first_fragment = False
                    self.metrics_hook.record_latency(
                        names.ADAPTER_FIRST_FRAGMENT_DURATION,
                        1000 * (monotonic() - start),
                        labels=labels,
                    )
                if isinstance(fragment, ParsingError):
                    yield fragment
                    continue
                self.metrics_hook.increment(names.ADAPTER_FRAGMENTS_TOTAL, labels=labels)
                for event in parser.feed(fragment):
                    yield event
        except AdapterError as exc:
            logger.error("Error during stream generation for %s: %s", adapter.name, exc)
            failure = StreamError(exc.message, ErrorOrigin.ADAPTER)
        except Exception:
            logger.exception("Unexpected error while streaming from %s", adapter.name)
            failure = StreamError(
                "An unexpected error occurred during streaming", ErrorOrigin.UNEXPECTED
            )
        except (GeneratorExit, asyncio.CancelledError):
            logger.info("Client disconnected, unsubscribing from %s.", adapter.name)
            parser.close()
            self.metrics_hook.increment(names.RELAY_DISCONNECTS_TOTAL, labels=labels)
            raise
        finally:
            await fragments.aclose()

        try:
            trailing = parser.finish()
        except Exception:
            logger.exception("Failed to flush parser for %s", adapter.name)
            trailing = []
            if failure is None:
                failure = StreamError(
                    "An unexpected error occurred during streaming",
                    ErrorOrigin.UNEXPECTED,
                )
        for event in trailing:
            yield event

        self.metrics_hook.record_latency(
            names.RELAY_STREAM_DURATION, 1000 * (monotonic() - start), labels=labels
        )
        if failure is not None:
            self._record_error(failure.origin.value, adapter.name)
            yield failure
            yield Done(DoneStatus.FAILED)
            return

        logger.info("Stream for %s completed.", adapter.name)
        yield Done(DoneStatus.COMPLETED)

    def _record_error(self, origin: str, provider: str = "") -> None:
        self.metrics_hook.increment(
            names.RELAY_ERRORS_TOTAL, labels={"origin": origin, "provider": provider}
        )
