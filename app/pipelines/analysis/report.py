"""Assemble the final report fields from parsed sections."""

from __future__ import annotations

from typing import Any, Sequence

from .types import TranscriptSection

MAX_FALLBACK_TOPICS = 10
COMPLETE_RATIO = 0.8
HIGH_CONFIDENCE = 0.9
LOW_CONFIDENCE = 0.7


def build_transcript(sections: Sequence[TranscriptSection]) -> str:
    blocks = [
        f"## [{section.timestamp_start}] {section.title}\n\n{section.content}\n\n---"
        for section in sections
    ]
    return "\n\n".join(blocks)


def build_timeline(sections: Sequence[TranscriptSection]) -> list[dict[str, Any]]:
    return [
        {
            "start_time": section.timestamp_start,
            "end_time": section.timestamp_end,
            "title": section.title,
            "summary": section.summary,
            "topics": list(section.topics),
        }
        for section in sections
    ]


def fallback_topics(sections: Sequence[TranscriptSection]) -> list[str]:
    """Section topics in first-seen order, deduplicated and capped."""

    seen: dict[str, None] = {}
    for section in sections:
        for topic in section.topics:
            seen.setdefault(topic, None)
    return list(seen)[:MAX_FALLBACK_TOPICS]


def confidence_for(sections: Sequence[TranscriptSection], total_chunks: int) -> float:
    if total_chunks > 0 and len(sections) >= total_chunks * COMPLETE_RATIO:
        return HIGH_CONFIDENCE
    return LOW_CONFIDENCE


def default_title(sections: Sequence[TranscriptSection]) -> str:
    return sections[0].title if sections else "Audio Recording"


def default_summary(sections: Sequence[TranscriptSection]) -> str:
    return f"{len(sections)} sections transcribed."


__all__ = [
    "build_timeline",
    "build_transcript",
    "confidence_for",
    "default_summary",
    "default_title",
    "fallback_topics",
]
