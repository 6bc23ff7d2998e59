# src/translate_relay/streaming/parser.py

import logging

from translate_relay.errors import PayloadDecodeError
from translate_relay.observability import names
from translate_relay.observability.base import MetricsHook, NoOpMetricsHook

from .events import AnalysisInfo, SectionEnd, SectionStart, StructuralEvent, TextChunk
from .markers import (
    DEFAULT_VOCABULARY,
    JsonPayloadDecoder,
    MarkerKind,
    MarkerMatch,
    MarkerVocabulary,
    PayloadDecoder,
)

logger = logging.getLogger(__name__)


class MarkerStreamParser:
    """Incremental section parser for marker-delimited model output.

    Fed raw fragments in order, it emits section and text events. Fragment
    boundaries may fall anywhere, including inside a marker; the parser
    holds back only the tail of the buffer that could still become a
    marker and flushes the rest eagerly.

    Protocol violations (text outside a section, a stray close marker, a
    new section opening over an old one, an undecodable inline payload) are
    logged and corrected locally. They never stop the parser.

    One instance serves exactly one request and is discarded afterwards.
    """

    def __init__(
        self,
        vocabulary: MarkerVocabulary = DEFAULT_VOCABULARY,
        decoder: PayloadDecoder | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._vocabulary = vocabulary
        self._decoder = decoder if decoder is not None else JsonPayloadDecoder()
        self.metrics_hook = metrics_hook
        self._buffer = ""
        self._current_section: str | None = None
        self._capturing_payload = False
        self._finished = False

    @property
    def current_section(self) -> str | None:
        return self._current_section

    @property
    def buffered(self) -> str:
        return self._buffer

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, fragment: str) -> list[StructuralEvent]:
        """Consume one fragment and return the events it completes."""
        if self._finished:
            raise RuntimeError("Parser is finished; create a new one per request")

        self._buffer += fragment
        events: list[StructuralEvent] = []

        while True:
            match = self._vocabulary.find_earliest(self._buffer)
            if match is None:
                break
            self._consume_until(match, events)

        self._flush_unambiguous(events)
        self._count(events)
        return events

    def finish(self) -> list[StructuralEvent]:
        """Flush whatever is left at end of stream.

        Residual text of an open section becomes a final text chunk followed
        by an implicit section end. Calling it again is a no-op.
        """
        if self._finished:
            return []
        self._finished = True

        events: list[StructuralEvent] = []
        rest, self._buffer = self._buffer, ""

        if self._capturing_payload:
            self._capturing_payload = False
            self._decode_payload(rest, events)
            rest = ""

        if self._current_section is not None:
            if rest:
                events.append(TextChunk(rest))
            logger.debug("Closing section %s at end of stream", self._current_section)
            events.append(SectionEnd(self._current_section))
            self._current_section = None
        elif rest.strip():
            logger.warning("Discarding unprocessed text outside section: %r", rest)

        self._count(events)
        return events

    def close(self) -> None:
        """Drop all state without emitting anything (client went away)."""
        self._buffer = ""
        self._current_section = None
        self._capturing_payload = False
        self._finished = True

    def _consume_until(self, match: MarkerMatch, events: list[StructuralEvent]) -> None:
        before = self._buffer[: match.index]
        self._buffer = self._buffer[match.end :]

        if self._capturing_payload:
            self._capturing_payload = False
            self._decode_payload(before, events)
        elif before:
            self._emit_text(before, events)

        marker = match.marker
        # Only the payload marker has no section.
        if marker.section is None:
            self._capturing_payload = True
        elif marker.kind is MarkerKind.OPEN:
            self._open_section(marker.section, events)
        else:
            self._close_section(marker.section, marker.text, events)

    def _emit_text(self, text: str, events: list[StructuralEvent]) -> None:
        if self._current_section is not None:
            events.append(TextChunk(text))
        elif text.strip():
            logger.warning("Ignoring text found outside section: %r", text)

    def _open_section(self, section: str, events: list[StructuralEvent]) -> None:
        if self._current_section is not None:
            logger.warning(
                "Starting section %s while section %s was still open. "
                "Implicitly closing previous.",
                section,
                self._current_section,
            )
            self._violation("implicit_close")
            events.append(SectionEnd(self._current_section))
        self._current_section = section
        events.append(SectionStart(section))

    def _close_section(
        self, section: str, marker_text: str, events: list[StructuralEvent]
    ) -> None:
        if section == self._current_section:
            events.append(SectionEnd(section))
            self._current_section = None
            return
        logger.warning(
            "Encountered %s but expected end for %s. Ignoring marker.",
            marker_text,
            self._current_section or "no open section",
        )
        self._violation("stray_close")

    def _decode_payload(self, raw: str, events: list[StructuralEvent]) -> None:
        # A payload that cannot be decoded is dropped; parsing always goes on.
        try:
            payload = self._decoder.decode(raw)
        except PayloadDecodeError as exc:
            logger.warning("Skipping undecodable inline payload %.200r: %s", raw, exc)
            self._violation("payload_decode")
            return
        except Exception:
            logger.exception("Payload decoder failed on %.200r; skipping it", raw)
            self._violation("payload_decode")
            return
        events.append(AnalysisInfo(payload))

    def _flush_unambiguous(self, events: list[StructuralEvent]) -> None:
        # Outside a section text is held until a marker decides its fate;
        # a pending payload is held until its terminating marker.
        if self._current_section is None or self._capturing_payload:
            return
        hold = self._vocabulary.partial_suffix_length(self._buffer)
        cut = len(self._buffer) - hold
        if cut > 0:
            events.append(TextChunk(self._buffer[:cut]))
            self._buffer = self._buffer[cut:]

    def _violation(self, kind: str) -> None:
        self.metrics_hook.increment(
            names.PARSER_PROTOCOL_VIOLATIONS_TOTAL, labels={"kind": kind}
        )

    def _count(self, events: list[StructuralEvent]) -> None:
        if events:
            self.metrics_hook.increment(names.PARSER_EVENTS_TOTAL, len(events))
