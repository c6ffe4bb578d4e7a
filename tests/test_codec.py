"""Tests for the stored summary body codec."""

import pytest

from vidbrief.core.constants import NO_TRANSCRIPT_TEXT, PLACEHOLDER_TRANSCRIPT_NOTICE
from vidbrief.services import codec


def test_encode_matches_stored_layout() -> None:
    blob = codec.encode("My Video", ["point one", "point two"], "Full text.")
    assert blob == "My Video\n\nKey Points:\n- point one\n- point two\n\nFull text."


def test_decode_returns_encoded_parts() -> None:
    content = codec.decode("My Video\n\nKey Points:\n- point one\n- point two\n\nFull text.")
    assert content.title == "My Video"
    assert content.key_points == ["point one", "point two"]
    assert content.prose == "Full text."


def test_decode_keeps_multi_paragraph_prose() -> None:
    prose = "First paragraph.\n\nSecond paragraph."
    content = codec.decode(codec.encode("Talk", ["only point"], prose), codec.BODY_FORMAT_V1)
    assert content.key_points == ["only point"]
    assert content.prose == prose


def test_decode_without_marker_is_prose_only() -> None:
    blob = "Just some text\n\nwith no structure at all."
    content = codec.decode(blob)
    assert content.title == ""
    assert content.key_points == []
    assert content.prose == blob


def test_decode_empty_and_none() -> None:
    assert codec.decode("") == codec.SummaryContent()
    assert codec.decode(None) == codec.SummaryContent()


def test_decode_tolerates_crlf_and_mixed_bullets() -> None:
    blob = "Title\r\n\r\nkey points:\r\n* alpha\r\n• beta\r\ngamma\r\n\r\nBody text."
    content = codec.decode(blob)
    assert content.title == "Title"
    assert content.key_points == ["alpha", "beta", "gamma"]
    assert content.prose == "Body text."


def test_decode_unknown_body_format_still_decodes() -> None:
    content = codec.decode("T\n\nKey Points:\n- a\n\nB", "kp-json/9")
    assert content.key_points == ["a"]
    assert content.prose == "B"


def test_encode_normalizes_points_and_title() -> None:
    blob = codec.encode("  Two\nlines  ", ["  spaced  ", "", "   ", "broken\nacross lines"], "Prose.")
    content = codec.decode(blob)
    assert content.title == "Two lines"
    assert content.key_points == ["spaced", "broken across lines"]
    assert content.prose == "Prose."


def test_empty_key_points_round_trip() -> None:
    content = codec.decode(codec.encode("Title", [], "Prose only."))
    assert content.title == "Title"
    assert content.key_points == []
    assert content.prose == "Prose only."


def test_synthesize_transcript_timestamps_sentences() -> None:
    transcript = codec.synthesize_transcript("First idea. Second idea! Third idea?")
    lines = transcript.split("\n")
    assert lines[0] == PLACEHOLDER_TRANSCRIPT_NOTICE
    assert lines[2:] == [
        "[00:00:00] First idea.",
        "[00:00:30] Second idea!",
        "[00:01:00] Third idea?",
    ]


def test_synthesize_transcript_without_sentences() -> None:
    assert codec.synthesize_transcript("") == NO_TRANSCRIPT_TEXT
    assert codec.synthesize_transcript("no terminal punctuation") == NO_TRANSCRIPT_TEXT


@pytest.mark.parametrize(
    "title",
    ["Top 5 Key Points: Python Tips", "key points: a recap", "Why KEY POINTS: matter"],
)
def test_title_mentioning_key_points_round_trips(title: str) -> None:
    content = codec.decode(codec.encode(title, ["point one", "point two"], "Full text."))
    assert content == codec.SummaryContent(title=title, key_points=["point one", "point two"], prose="Full text.")


def test_inline_key_points_phrase_is_not_a_marker() -> None:
    blob = "The speaker lists three key points: speed, safety and cost."
    content = codec.decode(blob)
    assert content.title == ""
    assert content.key_points == []
    assert content.prose == blob


def test_decode_normalizes_crlf_in_prose() -> None:
    blob = "Title\r\n\r\nKey Points:\r\n- a\r\n\r\nFirst line.\r\nSecond line.\r\n\r\nNext paragraph."
    content = codec.decode(blob)
    assert content.prose == "First line.\nSecond line.\n\nNext paragraph."


def test_decode_without_marker_keeps_crlf_verbatim() -> None:
    blob = "Legacy text\r\nwith windows line endings"
    assert codec.decode(blob).prose == blob
