from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any

from openai import APIError, AsyncOpenAI

from vidbrief.core.config import Settings
from vidbrief.core.constants import (
    DEFAULT_VIDEO_TITLE,
    DERIVED_MAX_KEY_POINTS,
    FALLBACK_MAX_KEY_POINTS,
    FALLBACK_MAX_PROSE_SENTENCES,
    FALLBACK_MIN_SENTENCE_CHARS,
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    MAX_TRANSCRIPT_CHARS,
    MIN_TRANSCRIPT_CHARS,
    NO_KEY_POINTS_TEXT,
    NO_SUMMARY_TEXT,
    SYSTEM_PROMPT,
    TRUNCATION_NOTE,
    UNEXTRACTED_SUMMARY_TEXT,
    USER_PROMPT_TEMPLATE,
)
from vidbrief.core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

# OpenRouter metadata header (optional but recommended)
OPENROUTER_APP_NAME = "vidbrief"

SUMMARY_MARKER = "SUMMARY:"
KEY_POINTS_MARKER = "KEY POINTS:"

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_BULLET_RE = re.compile(r"^[-•*]\s*")


class SummarizationError(ExternalServiceError):
    pass


@dataclass(frozen=True)
class VideoMetadata:
    video_id: str
    title: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class GeneratedSummary:
    title: str
    key_points: list[str]
    full_summary: str
    used_fallback: bool = False


def create_openrouter_client(settings: Settings) -> AsyncOpenAI | None:
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; summaries will use the local fallback")
        return None

    return AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        default_headers={"X-Title": OPENROUTER_APP_NAME},
    )


def _sentences(text: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_SPLIT_RE.split(text) if part.strip()]


def _strip_bullets(lines: list[str]) -> list[str]:
    points = (_BULLET_RE.sub("", line.strip(), count=1).strip() for line in lines)
    return [point for point in points if point]


def _derive_key_points(summary: str) -> list[str]:
    points = [sentence for sentence in _sentences(summary) if 15 < len(sentence) < 150]
    return points[:DERIVED_MAX_KEY_POINTS]


def parse_provider_response(text: str) -> tuple[str, list[str]]:
    """Split free-form provider output into (summary, key points). Never raises."""
    summary = ""
    key_points: list[str] = []

    if SUMMARY_MARKER in text and KEY_POINTS_MARKER in text:
        before_points, _, points_section = text.partition(KEY_POINTS_MARKER)
        _, _, summary = before_points.partition(SUMMARY_MARKER)
        summary = summary.strip()
        key_points = _strip_bullets(points_section.split("\n"))
    else:
        lines = [line.strip() for line in text.split("\n") if line.strip()]
        if len(lines) > 1:
            summary = lines[0]
            key_points = _strip_bullets(lines[1:])
        else:
            summary = text.strip()

    if not summary:
        summary = UNEXTRACTED_SUMMARY_TEXT
    if not key_points:
        key_points = _derive_key_points(summary) or [NO_KEY_POINTS_TEXT]

    return summary, key_points


def fallback_summary(transcript: str, title: str) -> GeneratedSummary:
    """Deterministic local summary: the leading sentences of the transcript."""
    sentences = [s for s in _sentences(transcript or "") if len(s) > FALLBACK_MIN_SENTENCE_CHARS]

    key_points: list[str] = []
    for sentence in sentences[:FALLBACK_MAX_KEY_POINTS]:
        if sentence not in key_points:
            key_points.append(sentence)

    prose_sentences = sentences[:FALLBACK_MAX_PROSE_SENTENCES]
    full_summary = ". ".join(prose_sentences) + "." if prose_sentences else NO_SUMMARY_TEXT

    return GeneratedSummary(
        title=title,
        key_points=key_points or [NO_KEY_POINTS_TEXT],
        full_summary=full_summary,
        used_fallback=True,
    )


def _build_prompt(transcript: str, title: str) -> str:
    truncated = len(transcript) > MAX_TRANSCRIPT_CHARS
    return USER_PROMPT_TEMPLATE.format(
        title=title,
        transcript=transcript[:MAX_TRANSCRIPT_CHARS],
        truncation_note=TRUNCATION_NOTE if truncated else "",
    )


class SummaryGenerator:
    """Turns a transcript into (title, key points, prose).

    `generate` never raises: any provider problem is logged and answered with
    the local fallback.
    """

    def __init__(self, client: AsyncOpenAI | None, *, model: str, timeout_seconds: float) -> None:
        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings, client: AsyncOpenAI | None = None) -> SummaryGenerator:
        return cls(
            client if client is not None else create_openrouter_client(settings),
            model=settings.openrouter_model,
            timeout_seconds=settings.generation_timeout_seconds,
        )

    async def _complete(self, transcript: str, title: str) -> str:
        if self.client is None:
            raise ConfigurationError("Summary provider is not configured.")
        if len(transcript) < MIN_TRANSCRIPT_CHARS:
            raise SummarizationError("Transcript is too short to generate a meaningful summary.")

        try:
            response: Any = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": _build_prompt(transcript, title)},
                    ],
                    temperature=GENERATION_TEMPERATURE,
                    max_tokens=GENERATION_MAX_TOKENS,
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise SummarizationError("Summary provider timed out.") from exc
        except APIError as exc:
            raise SummarizationError("Failed to call summary provider.") from exc

        content: Any = response.choices[0].message.content if response.choices else None
        if not isinstance(content, str) or not content.strip():
            raise SummarizationError("Empty summary response.")
        return content

    async def generate(self, transcript: str, metadata: VideoMetadata) -> GeneratedSummary:
        title = metadata.title or DEFAULT_VIDEO_TITLE
        transcript = transcript or ""
        step_start = time.perf_counter()
        try:
            text = await self._complete(transcript, title)
        except (SummarizationError, ConfigurationError) as exc:
            logger.warning(
                "summary provider unavailable, using fallback: %s",
                exc.detail,
                extra={"video_id": metadata.video_id, "error_type": type(exc).__name__},
            )
            return fallback_summary(transcript, title)
        except Exception:
            logger.exception("unexpected summary provider failure, using fallback", extra={"video_id": metadata.video_id})
            return fallback_summary(transcript, title)

        summary, key_points = parse_provider_response(text)
        logger.info(
            "summary generated %.2fms",
            (time.perf_counter() - step_start) * 1000,
            extra={"video_id": metadata.video_id, "key_points": len(key_points)},
        )
        return GeneratedSummary(title=title, key_points=key_points, full_summary=summary)
