# src/translate_relay/streaming/markers.py

"""Marker vocabularies and inline payload decoders.

The marker parser knows nothing about concrete marker text. It is handed a
``MarkerVocabulary`` (which literals open and close which section, and which
literal introduces the inline classification record) and a
``PayloadDecoder`` (how that record is turned into a dict). Swapping either
changes the wire convention without touching the state machine.
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ValidationError

from translate_relay.errors import PayloadDecodeError


class MarkerKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    PAYLOAD = "payload"


@dataclass(frozen=True)
class Marker:
    text: str
    kind: MarkerKind
    section: str | None = None  # None only for PAYLOAD


@dataclass(frozen=True)
class MarkerMatch:
    marker: Marker
    index: int

    @property
    def end(self) -> int:
        return self.index + len(self.marker.text)


class MarkerVocabulary:
    """Immutable, prefix-distinct set of markers.

    No marker may be a prefix of another one, so the earliest match in a
    buffer is always unambiguous.
    """

    def __init__(
        self,
        sections: Mapping[str, tuple[str, str]],
        payload_marker: str | None = None,
    ) -> None:
        markers: list[Marker] = []
        for name, (open_text, close_text) in sections.items():
            markers.append(Marker(open_text, MarkerKind.OPEN, name))
            markers.append(Marker(close_text, MarkerKind.CLOSE, name))
        if payload_marker is not None:
            markers.append(Marker(payload_marker, MarkerKind.PAYLOAD))

        texts = [m.text for m in markers]
        for text in texts:
            if not text:
                raise ValueError("Markers must be non-empty")
        for i, a in enumerate(texts):
            for j, b in enumerate(texts):
                if i != j and b.startswith(a):
                    raise ValueError(f"Marker {a!r} is a prefix of {b!r}")

        self._markers = tuple(markers)
        self._sections = tuple(sections)
        self._payload_marker = payload_marker
        # Every proper prefix of every marker, for partial-match holdback.
        self._prefixes = frozenset(
            m.text[:i] for m in markers for i in range(1, len(m.text))
        )
        self._max_len = max((len(t) for t in texts), default=0)

    @classmethod
    def from_sections(
        cls,
        names: Iterable[str],
        *,
        payload_marker: str | None = None,
        open_suffix: str = "_START",
        close_suffix: str = "_END",
    ) -> "MarkerVocabulary":
        """Build a ``[NAME_START]`` / ``[NAME_END]`` style vocabulary."""
        sections = {
            name: (f"[{name}{open_suffix}]", f"[{name}{close_suffix}]")
            for name in names
        }
        return cls(sections, payload_marker=payload_marker)

    @property
    def markers(self) -> tuple[Marker, ...]:
        return self._markers

    @property
    def sections(self) -> tuple[str, ...]:
        return self._sections

    @property
    def payload_marker(self) -> str | None:
        return self._payload_marker

    def find_earliest(self, text: str) -> MarkerMatch | None:
        """Return the marker with the smallest start index in ``text``."""
        best: MarkerMatch | None = None
        for marker in self._markers:
            index = text.find(marker.text)
            if index != -1 and (best is None or index < best.index):
                best = MarkerMatch(marker=marker, index=index)
        return best

    def partial_suffix_length(self, text: str) -> int:
        """Length of the longest tail of ``text`` that could start a marker."""
        for size in range(min(len(text), self._max_len - 1), 0, -1):
            if text[-size:] in self._prefixes:
                return size
        return 0


DEFAULT_SECTIONS = (
    "EXPLANATION",
    "CONTEXT_EXPLANATION",
    "DICTIONARY",
    "TRANSLATION_RESULT",
    "FRAGMENT_ERROR",
)

DEFAULT_VOCABULARY = MarkerVocabulary.from_sections(
    DEFAULT_SECTIONS, payload_marker="[ANALYSIS_INFO]"
)


class PayloadDecoder(Protocol):
    def decode(self, raw: str) -> dict[str, Any]:
        """Decode one inline payload.

        Raises:
            PayloadDecodeError: If ``raw`` is not a valid payload.
        """
        ...


class AnalysisInfoPayload(BaseModel):
    inputType: Literal["word_or_phrase", "sentence", "fragment"]
    sourceText: str

    class Config:
        extra = "ignore"


class JsonPayloadDecoder:
    """Decodes the classification record as a JSON object.

    Tolerates surrounding whitespace and a markdown code fence, which
    models add despite being told not to.
    """

    def __init__(self, schema: type[BaseModel] | None = AnalysisInfoPayload) -> None:
        self._schema = schema

    def decode(self, raw: str) -> dict[str, Any]:
        text = _strip_code_fence(raw.strip())
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            # RecursionError comes from pathologically nested input.
            raise PayloadDecodeError(f"Invalid JSON payload: {exc}") from exc

        if not isinstance(data, dict):
            raise PayloadDecodeError(
                f"Expected a JSON object, got {type(data).__name__}"
            )

        if self._schema is None:
            return data

        try:
            return self._schema(**data).model_dump()
        except ValidationError as exc:
            raise PayloadDecodeError(f"Payload failed validation: {exc}") from exc


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    lines = text.splitlines()
    body = lines[1:]
    if body and body[-1].strip() == "```":
        body = body[:-1]
    return "\n".join(body).strip()
