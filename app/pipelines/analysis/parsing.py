"""Extract structured data from model responses."""

from __future__ import annotations

import json
import re
from typing import Any

from .chunking import format_timestamp
from .types import ChunkWindow, TranscriptSection

MIN_CONTENT_LENGTH = 50
SUMMARY_FALLBACK_LENGTH = 200

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class AnalysisError(RuntimeError):
    """Raised when a model response cannot be turned into analysis data."""


def _label_pattern(label: str) -> re.Pattern[str]:
    # Each section runs until the next `===` marker or the end of the text.
    return re.compile(rf"==={label}===\s*(.*?)(?====|$)", re.IGNORECASE | re.DOTALL)


_TITLE = _label_pattern("TITLE")
_TRANSCRIPT = _label_pattern("TRANSCRIPT")
_SUMMARY = _label_pattern("SUMMARY")
_TOPICS = _label_pattern("TOPICS")


def _extract(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_chunk_response(text: str, window: ChunkWindow) -> TranscriptSection | None:
    """Build a section from the `===LABEL===` response; None when there is no real content."""

    text = text or ""
    content = _extract(_TRANSCRIPT, text) or text.strip()
    if len(content) < MIN_CONTENT_LENGTH:
        return None

    title = _extract(_TITLE, text) or f"Part {window.index + 1}"
    summary = _extract(_SUMMARY, text) or content[:SUMMARY_FALLBACK_LENGTH] + "..."
    topics = [topic.strip() for topic in _extract(_TOPICS, text).split(",") if topic.strip()]

    return TranscriptSection(
        chunk_index=window.index,
        timestamp_start=format_timestamp(window.start_minute),
        timestamp_end=format_timestamp(window.end_minute),
        title=title,
        content=content,
        summary=summary,
        topics=topics,
    )


def parse_json_payload(text: str) -> dict[str, Any]:
    """Decode a JSON object, tolerating Markdown fences and surrounding prose."""

    cleaned = _FENCE_PATTERN.sub("", (text or "").strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _OBJECT_PATTERN.search(cleaned)
        if match is None:
            raise AnalysisError("Failed to parse AI response as JSON") from None
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise AnalysisError("Failed to parse AI response as JSON") from exc

    if not isinstance(payload, dict):
        raise AnalysisError("AI response JSON was not an object")
    return payload


__all__ = [
    "AnalysisError",
    "MIN_CONTENT_LENGTH",
    "parse_chunk_response",
    "parse_json_payload",
]
