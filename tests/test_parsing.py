"""Model response parsing."""

from __future__ import annotations

import pytest

from app.pipelines.analysis.parsing import AnalysisError, parse_chunk_response, parse_json_payload
from app.pipelines.analysis.types import ChunkWindow

WINDOW = ChunkWindow(index=1, start_minute=45, end_minute=90)
TRANSCRIPT = (
    "Speaker 1: Thanks for having me over, is there a place we can sit down?\n"
    "Speaker 2: Sure, come on in."
)


def test_parses_all_labelled_sections():
    text = (
        "===TITLE===\nIntroduction and sitdown\n"
        f"===TRANSCRIPT===\n{TRANSCRIPT}\n"
        "===SUMMARY===\nThe rep asks to sit down.\n"
        "===TOPICS===\nSitdown, Rapport , , Introductions\n"
        "===END==="
    )

    section = parse_chunk_response(text, WINDOW)

    assert section is not None
    assert section.chunk_index == 1
    assert section.timestamp_start == "45:00"
    assert section.timestamp_end == "1:30:00"
    assert section.title == "Introduction and sitdown"
    assert section.content == TRANSCRIPT
    assert section.summary == "The rep asks to sit down."
    assert section.topics == ["Sitdown", "Rapport", "Introductions"]


def test_labels_are_case_insensitive():
    text = f"===title===\nLower\n===transcript===\n{TRANSCRIPT}\n===end==="

    section = parse_chunk_response(text, WINDOW)

    assert section is not None
    assert section.title == "Lower"
    assert section.content == TRANSCRIPT


def test_unlabelled_text_falls_back_to_defaults():
    section = parse_chunk_response(TRANSCRIPT, WINDOW)

    assert section is not None
    assert section.title == "Part 2"
    assert section.content == TRANSCRIPT
    assert section.summary == TRANSCRIPT[:200] + "..."
    assert section.topics == []


def test_short_content_is_rejected():
    assert parse_chunk_response("===TRANSCRIPT===\nToo short\n===END===", WINDOW) is None
    assert parse_chunk_response("", WINDOW) is None


def test_json_payload_plain_and_fenced():
    assert parse_json_payload('{"title": "Call"}') == {"title": "Call"}
    assert parse_json_payload('```json\n{"title": "Call"}\n```') == {"title": "Call"}


def test_json_payload_embedded_in_prose():
    payload = parse_json_payload('Here you go:\n{"a": {"b": 1}}\nThanks!')

    assert payload == {"a": {"b": 1}}


@pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]", "{broken"])
def test_json_payload_errors(text):
    with pytest.raises(AnalysisError):
        parse_json_payload(text)
