# src/translate_relay/streaming/__init__.py

"""Stream normalization for marker-delimited model output.

Raw fragments go in, typed section events come out:

    >>> from translate_relay.streaming import MarkerStreamParser
    >>> parser = MarkerStreamParser()
    >>> parser.feed("[TRANSLATION_RESULT_START]你好")
    [SectionStart(section='TRANSLATION_RESULT'), TextChunk(text='你好')]
    >>> parser.finish()
    [SectionEnd(section='TRANSLATION_RESULT')]
"""

from .events import (
    AnalysisInfo,
    Done,
    DoneStatus,
    ErrorOrigin,
    Event,
    ParsingError,
    SectionEnd,
    SectionStart,
    StreamError,
    StructuralEvent,
    TextChunk,
)
from .markers import (
    DEFAULT_SECTIONS,
    DEFAULT_VOCABULARY,
    AnalysisInfoPayload,
    JsonPayloadDecoder,
    Marker,
    MarkerKind,
    MarkerMatch,
    MarkerVocabulary,
    PayloadDecoder,
)
from .parser import MarkerStreamParser

__all__ = [
    # Parser
    "MarkerStreamParser",
    # Strategies
    "DEFAULT_SECTIONS",
    "DEFAULT_VOCABULARY",
    "AnalysisInfoPayload",
    "JsonPayloadDecoder",
    "Marker",
    "MarkerKind",
    "MarkerMatch",
    "MarkerVocabulary",
    "PayloadDecoder",
    # Events
    "AnalysisInfo",
    "Done",
    "DoneStatus",
    "ErrorOrigin",
    "Event",
    "ParsingError",
    "SectionEnd",
    "SectionStart",
    "StreamError",
    "StructuralEvent",
    "TextChunk",
]
