# src/translate_relay/adapters/anthropic.py

import logging
from typing import Any

from anthropic import (
    NOT_GIVEN,
    APIConnectionError,
    APIError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from translate_relay.errors import AdapterError
from translate_relay.observability import names
from translate_relay.observability.base import MetricsHook, NoOpMetricsHook

from .base import FragmentStream, Message, ProviderAdapter, Role

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


class AnthropicAdapter(ProviderAdapter):
    """Anthropic streaming adapter.

    Stateless. Transport-only retries. No behavior.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.default_model = default_model or "claude-sonnet-4-20250514"
        self._max_retries = max_retries
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized AnthropicAdapter with default_model=%s, timeout=%s",
            self.default_model,
            timeout,
        )

    async def open_stream(
        self,
        messages: list[Message],
        model: str,
        options: dict[str, Any] | None = None,
    ) -> FragmentStream:
        # Extract system message (Anthropic handles it separately)
        system_content, non_system = self._extract_system(messages)
        options = dict(options or {})
        max_tokens = options.pop("max_tokens", None) or 4096  # Anthropic requires it

        logger.info("Calling Anthropic model: %s", model)
        try:
            stream = await self._create_stream(
                system=system_content,
                messages=[{"role": m.role.value, "content": m.content} for m in non_system],
                model=model,
                max_tokens=max_tokens,
                options=options,
            )
        except APIError as exc:
            logger.error("Error creating Anthropic stream: %s", exc)
            self._record_error("open")
            raise AdapterError(self.name, str(exc)) from exc

        try:
            async for event in stream:
                # The SDK raises APIError itself for in-band error events.
                if event.type != "content_block_delta":
                    continue
                if event.delta.type == "text_delta" and event.delta.text:
                    yield event.delta.text
            logger.info("Anthropic stream finished.")
        except APIError as exc:
            logger.error("Error processing Anthropic stream: %s", exc)
            self._record_error("stream")
            raise AdapterError(self.name, str(exc)) from exc
        finally:
            await stream.close()

    async def aclose(self) -> None:
        await self._client.close()

    async def _create_stream(
        self,
        *,
        system: str | None,
        messages: list[dict[str, Any]],
        model: str,
        max_tokens: int,
        options: dict[str, Any],
    ) -> Any:
        """Open the upstream stream with transport-only retries."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.messages.create(
                    model=model,
                    messages=messages,  # type: ignore[arg-type]
                    max_tokens=max_tokens,
                    system=system if system else NOT_GIVEN,
                    stream=True,
                    **options,
                )

    def _extract_system(
        self, messages: list[Message]
    ) -> tuple[str | None, list[Message]]:
        """Extract system message from message list.

        Anthropic requires system message as a separate parameter.
        """
        system_content = None
        non_system = []

        for m in messages:
            if m.role == Role.SYSTEM:
                system_content = m.content
            else:
                non_system.append(m)

        return system_content, non_system

    def _record_error(self, stage: str) -> None:
        self.metrics_hook.increment(
            names.ADAPTER_ERRORS_TOTAL, labels={"provider": self.name, "stage": stage}
        )
