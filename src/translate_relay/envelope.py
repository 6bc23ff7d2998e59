# src/translate_relay/envelope.py

"""Canonical response envelope.

Every event that leaves the relay is wrapped as ``{code, message, data}``.
``code`` is ``"0"`` for ordinary events, including both ``done`` events;
anything else names the failure category.
"""

from typing import Any

from pydantic import BaseModel

from translate_relay.streaming.events import (
    Done,
    DoneStatus,
    ErrorOrigin,
    Event,
    ParsingError,
    StreamError,
)


class ResponseCode:
    SUCCESS = "0"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    STREAM_GENERATION_ERROR = "STREAM_GENERATION_ERROR"
    AI_JSON_PARSE_ERROR = "AI_JSON_PARSE_ERROR"
    FRAGMENT_ERROR = "FRAGMENT_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_ORIGIN_CODES = {
    ErrorOrigin.CONFIGURATION: ResponseCode.PROVIDER_UNAVAILABLE,
    ErrorOrigin.ADAPTER: ResponseCode.STREAM_GENERATION_ERROR,
    ErrorOrigin.UNEXPECTED: ResponseCode.INTERNAL_ERROR,
}


class Envelope(BaseModel):
    code: str
    message: str
    data: dict[str, Any] | None = None

    class Config:
        extra = "forbid"

    @classmethod
    def success(
        cls, data: dict[str, Any] | None, message: str = "Success"
    ) -> "Envelope":
        return cls(code=ResponseCode.SUCCESS, message=message, data=data)

    @classmethod
    def error(
        cls,
        message: str,
        code: str = ResponseCode.INTERNAL_ERROR,
        data: dict[str, Any] | None = None,
    ) -> "Envelope":
        return cls(code=code, message=message, data=data)

    @property
    def is_success(self) -> bool:
        return self.code == ResponseCode.SUCCESS

    @property
    def is_terminal(self) -> bool:
        return self.data is not None and self.data.get("type") == "done"

    def to_json(self) -> str:
        return self.model_dump_json()


def envelope_for(event: Event) -> Envelope:
    """Wrap one event in its envelope."""
    if isinstance(event, ParsingError):
        return Envelope.error(
            event.message, ResponseCode.AI_JSON_PARSE_ERROR, event.to_data()
        )
    if isinstance(event, StreamError):
        return Envelope.error(
            event.message, _ORIGIN_CODES[event.origin], event.to_data()
        )
    if isinstance(event, Done) and event.status is DoneStatus.FAILED:
        return Envelope.success(event.to_data(), message="Stream ended with error")
    return Envelope.success(event.to_data())
