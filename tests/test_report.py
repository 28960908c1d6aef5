"""Transcript, timeline and confidence assembly."""

from __future__ import annotations

from app.pipelines.analysis.report import (
    build_timeline,
    build_transcript,
    confidence_for,
    default_summary,
    default_title,
    fallback_topics,
)
from app.pipelines.analysis.types import TranscriptSection


def _section(index: int, topics: list[str]) -> TranscriptSection:
    return TranscriptSection(
        chunk_index=index,
        timestamp_start=f"{index * 45}:00",
        timestamp_end=f"{(index + 1) * 45}:00",
        title=f"Title {index}",
        content=f"Content {index}",
        summary=f"Summary {index}",
        topics=topics,
    )


def test_transcript_blocks_are_joined_with_blank_lines():
    transcript = build_transcript([_section(0, []), _section(1, [])])

    assert transcript == (
        "## [0:00] Title 0\n\nContent 0\n\n---"
        "\n\n"
        "## [45:00] Title 1\n\nContent 1\n\n---"
    )


def test_timeline_mirrors_sections():
    timeline = build_timeline([_section(0, ["Price"])])

    assert timeline == [
        {
            "start_time": "0:00",
            "end_time": "45:00",
            "title": "Title 0",
            "summary": "Summary 0",
            "topics": ["Price"],
        }
    ]


def test_fallback_topics_are_unique_ordered_and_capped():
    sections = [
        _section(0, ["Price", "Roof age"]),
        _section(1, ["Roof age", "Warranty"] + [f"Topic {i}" for i in range(10)]),
    ]

    topics = fallback_topics(sections)

    assert topics[:3] == ["Price", "Roof age", "Warranty"]
    assert len(topics) == 10


def test_confidence_depends_on_completed_share():
    sections = [_section(i, []) for i in range(4)]

    assert confidence_for(sections, 5) == 0.9
    assert confidence_for(sections[:3], 5) == 0.7
    assert confidence_for([], 1) == 0.7


def test_defaults_without_final_analysis():
    assert default_title([]) == "Audio Recording"
    assert default_title([_section(0, [])]) == "Title 0"
    assert default_summary([_section(0, []), _section(1, [])]) == "2 sections transcribed."
