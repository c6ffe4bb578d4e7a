"""Encoded summary bodies.

A stored summary packs title, key points and prose into one string:

    <title>

    Key Points:
    - <point 1>
    - <point 2>

    <prose>

Rows written by this service carry ``body_format = BODY_FORMAT_V1``. Rows
without a discriminant (or with one we do not know) are decoded with the same
tolerant parser, so older data keeps reading back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from vidbrief.core.constants import (
    NO_TRANSCRIPT_TEXT,
    PLACEHOLDER_TRANSCRIPT_NOTICE,
    PLACEHOLDER_TRANSCRIPT_STEP_SECONDS,
)

logger = logging.getLogger(__name__)

BODY_FORMAT_V1 = "kp-text/1"
KNOWN_BODY_FORMATS = frozenset({BODY_FORMAT_V1})

KEY_POINTS_MARKER = "Key Points:"

_MARKER_LINE_RE = re.compile(r"^[ \t]*key points:[ \t]*$", re.IGNORECASE | re.MULTILINE)
_BULLET_RE = re.compile(r"^[-*•]\s*")
_WHITESPACE_RUN_RE = re.compile(r"\s*\n\s*")
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")


@dataclass(frozen=True)
class SummaryContent:
    title: str = ""
    key_points: list[str] = field(default_factory=list)
    prose: str = ""


def _single_line(value: str) -> str:
    return _WHITESPACE_RUN_RE.sub(" ", value).strip()


def normalize_key_points(points: list[str] | tuple[str, ...]) -> list[str]:
    """Strip each point, fold internal line breaks and drop empties."""
    normalized = (_single_line(point) for point in points)
    return [point for point in normalized if point]


def encode(title: str, key_points: list[str] | tuple[str, ...], prose: str) -> str:
    lines = "\n".join(f"- {point}" for point in normalize_key_points(key_points))
    return f"{_single_line(title)}\n\n{KEY_POINTS_MARKER}\n{lines}\n\n{prose}"


def _parse_key_point_lines(block: str) -> list[str]:
    points = []
    for line in block.split("\n"):
        point = _BULLET_RE.sub("", line.strip(), count=1).strip()
        if point:
            points.append(point)
    return points


def _decode_text(blob: str) -> SummaryContent:
    text = blob.replace("\r\n", "\n")
    # The marker must sit on its own line; a title may contain the same words.
    marker = _MARKER_LINE_RE.search(text)
    if marker is None:
        return SummaryContent(title="", key_points=[], prose=blob)

    head = text[: marker.start()]
    title = next((line.strip() for line in head.split("\n") if line.strip()), "")

    rest = text[marker.end() :].removeprefix("\n")
    points_block, _, prose = rest.partition("\n\n")
    return SummaryContent(title=title, key_points=_parse_key_point_lines(points_block), prose=prose)


def decode(blob: str | None, body_format: str | None = None) -> SummaryContent:
    """Decode a stored body. Never raises; malformed input degrades to prose-only."""
    if not blob:
        return SummaryContent()
    if body_format is not None and body_format not in KNOWN_BODY_FORMATS:
        logger.warning("unknown body format, using text decoder", extra={"body_format": body_format})
    return _decode_text(blob)


def _format_offset(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def synthesize_transcript(prose: str) -> str:
    """Build a placeholder transcript from summary prose for records stored without one."""
    sentences = [sentence.strip() for sentence in _SENTENCE_RE.findall(prose or "")]
    sentences = [sentence for sentence in sentences if sentence]
    if not sentences:
        return NO_TRANSCRIPT_TEXT

    lines = [
        f"[{_format_offset(index * PLACEHOLDER_TRANSCRIPT_STEP_SECONDS)}] {sentence}"
        for index, sentence in enumerate(sentences)
    ]
    return f"{PLACEHOLDER_TRANSCRIPT_NOTICE}\n\n" + "\n".join(lines)
