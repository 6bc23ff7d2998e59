# src/translate_relay/server/app.py

"""FastAPI application exposing the translation stream.

Endpoints:
  - POST /v1/translate/stream: text/event-stream of response envelopes
  - GET /health: configured providers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from translate_relay.adapters.factory import create_adapter
from translate_relay.adapters.registry import ProviderRegistry
from translate_relay.dispatcher import StreamDispatcher
from translate_relay.envelope import Envelope, ResponseCode
from translate_relay.errors import ConfigurationError
from translate_relay.observability.base import LoggingMetricsHook, MetricsHook
from translate_relay.request import TranslateRequest

from .exception_handlers import register_exception_handlers
from .settings import Settings, get_settings
from .sse import SSE_HEADERS, stream_events

logger = logging.getLogger(__name__)


def build_registry(settings: Settings, metrics_hook: MetricsHook) -> ProviderRegistry:
    """Register every provider that has credentials."""
    registry = ProviderRegistry(default=settings.default_provider)
    for config in settings.adapter_configs():
        try:
            registry.register(create_adapter(config, metrics_hook=metrics_hook))
        except ConfigurationError as exc:
            logger.error("Failed to initialize provider %s: %s", config.provider, exc)
    if not registry.names():
        logger.warning("No AI provider configured; every request will fail.")
    return registry


def create_app(
    settings: Settings | None = None,
    dispatcher: StreamDispatcher | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    if dispatcher is None:
        metrics_hook = LoggingMetricsHook()
        dispatcher = StreamDispatcher(
            build_registry(settings, metrics_hook), metrics_hook=metrics_hook
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Relay ready with providers: %s", dispatcher.registry.names())
        yield
        await dispatcher.registry.aclose()

    app = FastAPI(title="translate-relay", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.state.dispatcher = dispatcher
    register_exception_handlers(app)

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "providers": dispatcher.registry.names(),
            "default_provider": dispatcher.registry.default,
        }

    @app.post("/v1/translate/stream")
    async def translate_stream(body: TranslateRequest, request: Request):
        # Nothing has been sent yet, so a setup failure is a plain HTTP error.
        try:
            dispatcher.resolve(body)
        except ConfigurationError as exc:
            envelope = Envelope.error(str(exc), ResponseCode.PROVIDER_UNAVAILABLE)
            return JSONResponse(status_code=503, content=envelope.model_dump())

        return StreamingResponse(
            stream_events(dispatcher.stream(body), request.is_disconnected),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return app
