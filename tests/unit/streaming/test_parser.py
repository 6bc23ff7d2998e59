import logging

import pytest

from conftest import SEC_VOCABULARY
from translate_relay.streaming.events import (
    AnalysisInfo,
    SectionEnd,
    SectionStart,
    TextChunk,
)
from translate_relay.streaming.markers import DEFAULT_VOCABULARY
from translate_relay.streaming.parser import MarkerStreamParser


def run(fragments: list[str], vocabulary=SEC_VOCABULARY) -> list:
    parser = MarkerStreamParser(vocabulary)
    events = []
    for fragment in fragments:
        events.extend(parser.feed(fragment))
    events.extend(parser.finish())
    return events


def normalize(events: list) -> list:
    """Merge adjacent text chunks so chunk boundaries do not matter."""
    merged: list = []
    for event in events:
        if isinstance(event, TextChunk) and merged and isinstance(merged[-1], TextChunk):
            merged[-1] = TextChunk(merged[-1].text + event.text)
        else:
            merged.append(event)
    return merged


def splits(text: str) -> list[list[str]]:
    """A handful of representative fragmentations of ``text``."""
    result = [[text], list(text)]
    for size in (2, 3, 5, 7):
        result.append([text[i : i + size] for i in range(0, len(text), size)])
    for cut in range(1, len(text)):
        result.append([text[:cut], text[cut:]])
    return result


class TestMarkerStreamParser:
    def test_text_split_across_fragments(self) -> None:
        """Each fragment's text is emitted as it arrives."""
        events = run(["[SEC_A]", "hello ", "wor", "ld[SEC_A_END]"])

        assert events == [
            SectionStart("A"),
            TextChunk("hello "),
            TextChunk("wor"),
            TextChunk("ld"),
            SectionEnd("A"),
        ]

    def test_text_before_any_section_is_discarded(self, caplog) -> None:
        """Prose outside markers is dropped with a warning."""
        with caplog.at_level(logging.WARNING):
            events = run(["stray ", "[SEC_A]", "x[SEC_A_END]"])

        assert events == [SectionStart("A"), TextChunk("x"), SectionEnd("A")]
        assert "stray" in caplog.text

    def test_marker_split_across_fragments(self) -> None:
        """A marker cut in the middle is still recognised."""
        events = run(["[SE", "C_A]hi[SEC_", "A_E", "ND]"])

        assert normalize(events) == [
            SectionStart("A"),
            TextChunk("hi"),
            SectionEnd("A"),
        ]

    def test_partial_marker_is_held_back(self) -> None:
        """Only the possible marker prefix is buffered; the rest flushes."""
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]")

        events = parser.feed("abc[SEC_")

        assert events == [TextChunk("abc")]
        assert parser.buffered == "[SEC_"

    def test_bracket_text_that_cannot_be_a_marker_is_flushed(self) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]")

        events = parser.feed("a [1] b [x")

        assert events == [TextChunk("a [1] b [x")]
        assert parser.buffered == ""

    def test_held_prefix_released_when_it_turns_out_not_to_be_a_marker(self) -> None:
        events = run(["[SEC_A]x[SEC", "_Z] y[SEC_A_END]"])

        assert normalize(events) == [
            SectionStart("A"),
            TextChunk("x[SEC_Z] y"),
            SectionEnd("A"),
        ]

    def test_many_markers_in_one_fragment(self) -> None:
        events = run(["[SEC_A]one[SEC_A_END][SEC_B]two[SEC_B_END]"])

        assert events == [
            SectionStart("A"),
            TextChunk("one"),
            SectionEnd("A"),
            SectionStart("B"),
            TextChunk("two"),
            SectionEnd("B"),
        ]

    def test_opening_new_section_implicitly_closes_previous(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            events = run(["[SEC_A]one[SEC_B]two[SEC_B_END]"])

        assert events == [
            SectionStart("A"),
            TextChunk("one"),
            SectionEnd("A"),
            SectionStart("B"),
            TextChunk("two"),
            SectionEnd("B"),
        ]
        assert "Implicitly closing" in caplog.text

    def test_stray_close_marker_is_ignored(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            events = run(["[SEC_B_END][SEC_A]x[SEC_B_END]y[SEC_A_END]"])

        assert normalize(events) == [
            SectionStart("A"),
            TextChunk("xy"),
            SectionEnd("A"),
        ]
        assert "Ignoring marker" in caplog.text

    def test_finish_flushes_open_section(self) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]partial[SEC")

        events = parser.finish()

        assert events == [TextChunk("[SEC"), SectionEnd("A")]
        assert parser.current_section is None

    def test_finish_twice_is_noop(self) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]partial")

        first = parser.finish()
        second = parser.finish()

        assert first == [SectionEnd("A")]
        assert second == []

    def test_finish_discards_text_outside_section(self, caplog) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]x[SEC_A_END] trailing words")

        with caplog.at_level(logging.WARNING):
            events = parser.finish()

        assert events == []
        assert "trailing words" in caplog.text

    def test_feed_after_finish_raises(self) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.finish()

        with pytest.raises(RuntimeError, match="finished"):
            parser.feed("more")

    def test_close_drops_state_silently(self) -> None:
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]abc[SEC_")

        parser.close()

        assert parser.buffered == ""
        assert parser.current_section is None
        assert parser.finish() == []

    def test_whitespace_inside_section_is_kept(self) -> None:
        events = run(["[SEC_A]", "  \n", "[SEC_A_END]"])

        assert events == [SectionStart("A"), TextChunk("  \n"), SectionEnd("A")]


class TestInlinePayload:
    def test_payload_decoded_at_next_marker(self) -> None:
        events = run(
            [
                '[INFO]{"inputType": "sen',
                'tence", "sourceText": "Hi there."}\n',
                "[SEC_A]你好[SEC_A_END]",
            ]
        )

        assert events == [
            AnalysisInfo({"inputType": "sentence", "sourceText": "Hi there."}),
            SectionStart("A"),
            TextChunk("你好"),
            SectionEnd("A"),
        ]

    def test_payload_is_never_flushed_as_text(self) -> None:
        """Even inside a section the payload stays buffered until it ends."""
        parser = MarkerStreamParser(SEC_VOCABULARY)
        parser.feed("[SEC_A]")

        events = parser.feed('a[INFO]{"inputType": "fragment"')

        assert events == [TextChunk("a")]
        assert parser.buffered == '{"inputType": "fragment"'
        assert parser.current_section == "A"

    def test_payload_decoded_at_end_of_stream(self) -> None:
        events = run(['[INFO]{"inputType": "fragment", "sourceText": "of the"}'])

        assert events == [
            AnalysisInfo({"inputType": "fragment", "sourceText": "of the"})
        ]

    def test_undecodable_payload_is_skipped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            events = run(["[INFO]{not json", "[SEC_A]ok[SEC_A_END]"])

        assert events == [SectionStart("A"), TextChunk("ok"), SectionEnd("A")]
        assert "undecodable inline payload" in caplog.text

    def test_payload_failing_validation_is_skipped(self) -> None:
        events = run(['[INFO]{"inputType": "poem", "sourceText": "x"}[SEC_A]y'])

        assert events == [SectionStart("A"), TextChunk("y"), SectionEnd("A")]

    def test_deeply_nested_payload_is_skipped(self) -> None:
        nested = "[" * 100_000

        events = run(["[SEC_A]x", "[INFO]" + nested + "[SEC_A_END]", "[SEC_B]y"])

        assert normalize(events) == [
            SectionStart("A"),
            TextChunk("x"),
            SectionEnd("A"),
            SectionStart("B"),
            TextChunk("y"),
            SectionEnd("B"),
        ]

    def test_deeply_nested_payload_at_end_of_stream_is_skipped(self) -> None:
        events = run(["[SEC_A]x", "[INFO]" + "[" * 100_000])

        assert events == [SectionStart("A"), TextChunk("x"), SectionEnd("A")]

    def test_failing_decoder_does_not_stop_parsing(self, caplog) -> None:
        class ExplodingDecoder:
            def decode(self, raw: str) -> dict:
                raise RuntimeError("decoder bug")

        parser = MarkerStreamParser(SEC_VOCABULARY, ExplodingDecoder())

        with caplog.at_level(logging.ERROR):
            events = parser.feed("[INFO]{}[SEC_A]ok[SEC_A_END]")
            events += parser.feed("[INFO]{}")
            events += parser.finish()

        assert events == [SectionStart("A"), TextChunk("ok"), SectionEnd("A")]
        assert "Payload decoder failed" in caplog.text


class TestFragmentationInvariance:
    @pytest.mark.parametrize(
        "text",
        [
            "[SEC_A]hello world[SEC_A_END]",
            "noise[SEC_A]a[b]c[SEC_B]d[SEC_B_END]tail",
            '[INFO]{"inputType": "sentence", "sourceText": "s"}[SEC_A]x [SEC_ y[SEC_A_END]',
            "[SEC_A_END][SEC_A]unterminated [SEC",
        ],
    )
    def test_events_independent_of_fragment_boundaries(self, text: str) -> None:
        expected = normalize(run([text]))

        for fragments in splits(text):
            assert normalize(run(fragments)) == expected, fragments


class TestDefaultVocabulary:
    def test_translation_result_section(self) -> None:
        events = run(
            [
                '[ANALYSIS_INFO]{"inputType": "sentence", "sourceText": "Good morning."}\n',
                "[TRANSLATION_RESULT_START]早上",
                "好。[TRANSLATION_RESULT_END]",
            ],
            vocabulary=DEFAULT_VOCABULARY,
        )

        assert normalize(events) == [
            AnalysisInfo({"inputType": "sentence", "sourceText": "Good morning."}),
            SectionStart("TRANSLATION_RESULT"),
            TextChunk("早上好。"),
            SectionEnd("TRANSLATION_RESULT"),
        ]

    def test_word_sections_in_order(self) -> None:
        text = (
            "[CONTEXT_EXPLANATION_START]ctx[CONTEXT_EXPLANATION_END]\n"
            "[DICTIONARY_START]dict[DICTIONARY_END]"
        )

        events = run(list(text), vocabulary=DEFAULT_VOCABULARY)

        assert normalize(events) == [
            SectionStart("CONTEXT_EXPLANATION"),
            TextChunk("ctx"),
            SectionEnd("CONTEXT_EXPLANATION"),
            SectionStart("DICTIONARY"),
            TextChunk("dict"),
            SectionEnd("DICTIONARY"),
        ]
