# src/translate_relay/adapters/openai.py

import logging
from typing import Any

from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    OpenAIError,
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

from .base import FragmentStream, Message, ProviderAdapter

logger = logging.getLogger(__name__)

# Providers speaking the OpenAI chat-completions dialect.
KNOWN_ENDPOINTS: dict[str, tuple[str | None, str]] = {
    "openai": (None, "gpt-4o-mini"),
    "deepseek": ("https://api.deepseek.com", "deepseek-chat"),
}

TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


class OpenAICompatibleAdapter(ProviderAdapter):
    """Streaming adapter for OpenAI-compatible endpoints (OpenAI, DeepSeek).

    Stateless. Transport-only retries. No behavior.
    """

    def __init__(
        self,
        api_key: str,
        name: str = "openai",
        default_model: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        known_url, known_model = KNOWN_ENDPOINTS.get(name, (None, "gpt-4o-mini"))
        self.name = name
        self.default_model = default_model or known_model
        # SDK-level retries would also fire mid-request; tenacity owns them.
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or known_url,
            timeout=timeout,
            max_retries=0,
        )
        self._max_retries = max_retries
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OpenAICompatibleAdapter name=%s, default_model=%s, timeout=%s",
            name,
            self.default_model,
            timeout,
        )

    async def open_stream(
        self,
        messages: list[Message],
        model: str,
        options: dict[str, Any] | None = None,
    ) -> FragmentStream:
        logger.info("Calling %s model: %s", self.name, model)
        try:
            stream = await self._create_stream(
                messages=self._convert_messages(messages),
                model=model,
                options=options or {},
            )
        except OpenAIError as exc:
            logger.error("Error creating %s stream: %s", self.name, exc)
            self._record_error("open")
            raise AdapterError(self.name, str(exc)) from exc

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
            logger.info("%s stream finished.", self.name)
        except OpenAIError as exc:
            logger.error("Error processing %s stream: %s", self.name, exc)
            self._record_error("stream")
            raise AdapterError(self.name, str(exc)) from exc
        finally:
            await stream.close()

    async def aclose(self) -> None:
        await self._client.close()

    async def _create_stream(
        self,
        *,
        messages: list[dict[str, Any]],
        model: str,
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
                return await self._client.chat.completions.create(
                    model=model,
                    messages=messages,  # type: ignore[arg-type]
                    stream=True,
                    **options,
                )

    def _convert_messages(self, messages: list[Message]) -> list[dict]:
        """Convert Message objects to OpenAI format.

        Internal only. Provider format never leaks outside.
        """
        return [{"role": m.role.value, "content": m.content} for m in messages]

    def _record_error(self, stage: str) -> None:
        self.metrics_hook.increment(
            names.ADAPTER_ERRORS_TOTAL, labels={"provider": self.name, "stage": stage}
        )
