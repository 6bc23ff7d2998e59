# src/translate_relay/server/sse.py

"""Server-Sent Events framing.

SSE Format (one envelope per event):
    data: {"code": "0", "message": "Success", "data": {"type": "text_chunk", "text": "..."}}

The stream ends right after the ``done`` envelope has been written.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing

from translate_relay.envelope import Envelope

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_event(envelope: Envelope) -> str:
    """Format one envelope as an SSE event."""
    return f"data: {envelope.to_json()}\n\n"


async def stream_events(
    envelopes: AsyncIterator[Envelope],
    is_disconnected: Callable[[], Awaitable[bool]],
) -> AsyncIterator[str]:
    """Frame envelopes, stopping as soon as the client goes away.

    Closing the envelope iterator tears down the upstream stream.
    """
    async with aclosing(envelopes) as source:  # type: ignore[type-var]
        async for envelope in source:
            if await is_disconnected():
                logger.info("SSE: Client disconnected")
                return
            yield format_event(envelope)
