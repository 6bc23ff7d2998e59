# src/translate_relay/streaming/events.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class DoneStatus(str, Enum):
    """How a request ended."""

    COMPLETED = "completed"
    FAILED = "failed"


class ErrorOrigin(str, Enum):
    """Where a terminal error came from."""

    CONFIGURATION = "configuration"
    ADAPTER = "adapter"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class SectionStart:
    section: str

    def to_data(self) -> dict[str, Any]:
        return {"type": "section_start", "payload": {"section": self.section}}


@dataclass(frozen=True)
class TextChunk:
    """Content belonging to the currently open section.

    Chunk boundaries follow fragment arrival and carry no meaning.
    """

    text: str

    def to_data(self) -> dict[str, Any]:
        return {"type": "text_chunk", "text": self.text}


@dataclass(frozen=True)
class SectionEnd:
    section: str

    def to_data(self) -> dict[str, Any]:
        return {"type": "section_end", "payload": {"section": self.section}}


@dataclass(frozen=True)
class AnalysisInfo:
    """Decoded inline classification record."""

    payload: dict[str, Any] = field(default_factory=dict)

    def to_data(self) -> dict[str, Any]:
        return {"type": "analysis_info", "payload": dict(self.payload)}


@dataclass(frozen=True)
class ParsingError:
    """A single malformed low-level chunk from a provider's wire format.

    Recoverable. The stream keeps going after it.
    """

    message: str
    line: str = ""

    def to_data(self) -> dict[str, Any]:
        return {
            "type": "parsing_error",
            "payload": {"message": self.message, "line": self.line},
        }


@dataclass(frozen=True)
class StreamError:
    """Terminal failure. Always followed by ``Done(FAILED)``."""

    message: str
    origin: ErrorOrigin = ErrorOrigin.ADAPTER

    def to_data(self) -> dict[str, Any]:
        return {"type": "error", "payload": {"message": self.message}}


@dataclass(frozen=True)
class Done:
    status: DoneStatus = DoneStatus.COMPLETED

    def to_data(self) -> dict[str, Any]:
        return {"type": "done", "payload": {"status": self.status.value}}


# Events the marker parser can produce.
StructuralEvent = Union[SectionStart, TextChunk, SectionEnd, AnalysisInfo]

Event = Union[
    SectionStart,
    TextChunk,
    SectionEnd,
    AnalysisInfo,
    ParsingError,
    StreamError,
    Done,
]
