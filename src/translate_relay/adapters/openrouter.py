# src/translate_relay/adapters/openrouter.py

"""OpenRouter adapter speaking raw Server-Sent Events over httpx.

OpenRouter streams ``data: {json}`` events terminated by ``data: [DONE]``
and interleaves ``: OPENROUTER PROCESSING`` keep-alive comments. A single
event whose JSON cannot be parsed is reported as a ``ParsingError`` and
skipped; an in-band ``{"error": ...}`` event ends the stream.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from translate_relay.errors import AdapterError
from translate_relay.observability import names
from translate_relay.observability.base import MetricsHook, NoOpMetricsHook
from translate_relay.streaming.events import ParsingError

from .base import FragmentStream, Message, ProviderAdapter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "deepseek/deepseek-chat-v3-0324:free"


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of an OpenRouter error body if present."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class OpenRouterAdapter(ProviderAdapter):
    """OpenRouter streaming adapter.

    Stateless. Transport-only retries. No behavior.
    """

    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        client: httpx.AsyncClient | None = None,
    ):
        self.default_model = default_model or DEFAULT_MODEL
        self._url = f"{(base_url or DEFAULT_BASE_URL).rstrip('/')}/chat/completions"
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._max_retries = max_retries
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OpenRouterAdapter with default_model=%s, timeout=%s",
            self.default_model,
            timeout,
        )

    async def open_stream(
        self,
        messages: list[Message],
        model: str,
        options: dict[str, Any] | None = None,
    ) -> FragmentStream:
        body = {
            "model": model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "stream": True,
            **(options or {}),
        }

        logger.info("Calling OpenRouter model: %s", model)
        try:
            response = await self._send(body)
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response)
            logger.error("Error calling OpenRouter API: %s", message)
            self._record_error("open")
            raise AdapterError(self.name, message) from exc
        except httpx.TransportError as exc:
            logger.error("Error calling OpenRouter API: %s", exc)
            self._record_error("open")
            raise AdapterError(self.name, str(exc) or type(exc).__name__) from exc

        try:
            async with aclosing(self._iter_events(response)) as events:
                async for data in events:
                    if data == "[DONE]":
                        logger.info("OpenRouter stream finished ([DONE] received).")
                        return
                    fragment = self._parse_event(data)
                    if fragment:
                        yield fragment
            logger.info("OpenRouter stream ended.")
        except httpx.HTTPError as exc:
            logger.error("Error reading OpenRouter response stream: %s", exc)
            self._record_error("stream")
            raise AdapterError(
                self.name, f"Error reading stream: {str(exc) or type(exc).__name__}"
            ) from exc
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, body: dict[str, Any]) -> httpx.Response:
        """Send the request with transport-only retries; body is left unread."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                request = self._client.build_request(
                    "POST", self._url, json=body, headers=self._headers
                )
                response = await self._client.send(request, stream=True)
                if response.is_error:
                    await response.aread()
                    await response.aclose()
                    response.raise_for_status()
                return response

    async def _iter_events(self, response: httpx.Response) -> AsyncIterator[str]:
        """Yield the joined ``data`` field of each SSE event."""
        data_lines: list[str] = []
        async for line in response.aiter_lines():
            if not line:
                if data_lines:
                    yield "\n".join(data_lines)
                    data_lines = []
                continue
            if line.startswith(":"):
                continue  # keep-alive comment
            field, _, value = line.partition(":")
            if field == "data":
                data_lines.append(value[1:] if value.startswith(" ") else value)
        if data_lines:
            logger.warning("Processing unterminated SSE event after stream end.")
            yield "\n".join(data_lines)

    def _parse_event(self, data: str) -> str | ParsingError | None:
        try:
            parsed = json.loads(data)
        except (ValueError, RecursionError):
            return self._parsing_error("Failed to parse AI response line.", data)

        if not isinstance(parsed, dict):
            return self._parsing_error("Unexpected AI response line.", data)

        error = parsed.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            self._record_error("stream")
            raise AdapterError(self.name, f"OpenRouter API Error: {message}")

        # Keep-alive and usage-only chunks carry no choices.
        choices = parsed.get("choices")
        if not choices:
            return None
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            return self._parsing_error("Unexpected AI response line.", data)

        delta = choices[0].get("delta")
        if delta is None:
            return None
        if not isinstance(delta, dict):
            return self._parsing_error("Unexpected AI response line.", data)

        content = delta.get("content")
        return content if isinstance(content, str) and content else None

    def _parsing_error(self, message: str, data: str) -> ParsingError:
        logger.error("%s OpenRouter line: %.200r", message, data)
        self.metrics_hook.increment(
            names.ADAPTER_PARSING_ERRORS_TOTAL, labels={"provider": self.name}
        )
        return ParsingError(message, line=data)

    def _record_error(self, stage: str) -> None:
        self.metrics_hook.increment(
            names.ADAPTER_ERRORS_TOTAL, labels={"provider": self.name, "stage": stage}
        )
