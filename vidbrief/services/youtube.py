from __future__ import annotations

from urllib.parse import ParseResult, parse_qs, urlparse

from vidbrief.core.constants import YOUTUBE_WATCH_URL


def extract_youtube_video_id(parsed_url: ParseResult) -> str | None:
    path = (parsed_url.path or "").strip("/")
    if not path:
        return None

    if parsed_url.hostname and parsed_url.hostname.lower() == "youtu.be":
        return path.split("/")[0] or None

    query = parse_qs(parsed_url.query or "")
    if path == "watch":
        value = query.get("v", [None])[0]
        return value or None

    for prefix in ("shorts/", "embed/", "live/"):
        if path.startswith(prefix):
            value = path.removeprefix(prefix).split("/")[0]
            return value or None

    return None


def video_id_from_url(url: str | None) -> str | None:
    if not url:
        return None
    return extract_youtube_video_id(urlparse(url))


def canonical_video_url(video_id: str, url: str | None = None) -> str:
    """The locator summaries are keyed on: the caller's URL when given, else the watch URL."""
    if url and url.strip():
        return url.strip()
    return YOUTUBE_WATCH_URL.format(video_id=video_id)
