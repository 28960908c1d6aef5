"""W4 ratings, totals, report normalisation and prompt assembly."""

from __future__ import annotations

import pytest

from app.pipelines.analysis.scoring import parse_score, phase_totals, rating_for, recompute_total
from app.pipelines.analysis.w4 import normalize_w4_report, report_title
from app.pipelines.analysis.w4_prompt import (
    CHECKPOINTS,
    PHASE_MAXIMA,
    W4_EDITABLE_CONTENT,
    W4_OUTPUT_FORMAT,
    build_w4_prompt,
)


@pytest.mark.parametrize(
    ("score", "rating"),
    [
        (100, "MVP"),
        (90, "MVP"),
        (89, "Playmaker"),
        (75, "Playmaker"),
        (74, "Starter"),
        (60, "Starter"),
        (59, "Prospect"),
        (45, "Prospect"),
        (44, "Below Prospect"),
        (0, "Below Prospect"),
    ],
)
def test_rating_bands(score, rating):
    assert rating_for(score) == rating


def test_checkpoint_maxima_add_up_to_each_phase():
    for phase, checkpoints in CHECKPOINTS.items():
        assert sum(maximum for _, maximum in checkpoints) == PHASE_MAXIMA[phase]
    assert sum(PHASE_MAXIMA.values()) == 100


def test_phase_totals_are_clamped():
    report = {
        "phases": {
            "why": {"checkpoints": [{"score": 30}, {"score": 20}]},
            "what": {"checkpoints": [{"score": 5}, {"score": "7"}]},
            "when": {"checkpoints": [{"score": None}, {"score": -3}]},
        }
    }

    assert phase_totals(report) == {"why": 38, "what": 12, "who": 0, "when": 0}
    assert recompute_total(report) == 50


def test_normalize_fills_defaults():
    report = normalize_w4_report({})

    assert report["client_name"] == "Unknown"
    assert report["rep_name"] == "Unknown"
    assert report["company_name"] == "Unknown"
    assert report["overall_performance"] == {
        "total_score": 0,
        "rating": "Below Prospect",
        "summary": "Analysis incomplete",
    }
    assert {k: v["max_score"] for k, v in report["phases"].items()} == PHASE_MAXIMA
    assert all(v["checkpoints"] == [] for v in report["phases"].values())
    assert report["what_done_right"] == []
    assert report["quick_wins"] == []
    assert report["coaching_recommendations"] == {}
    assert report["rank_assessment"] == {
        "current_rank": "Below Prospect",
        "next_level_requirements": "Complete fundamental training",
    }


def test_normalize_keeps_model_values_and_drops_transcript():
    raw = {
        "client_name": "Dana",
        "rep_name": "Sam",
        "overall_performance": {"total_score": 78, "rating": "Playmaker", "summary": "Solid call."},
        "phases": {"why": {"score": 30, "checkpoints": [{"name": "Inspection", "score": 3}]}},
        "quick_wins": [{"title": "Silence", "action": "Stop talking", "points_worth": 5}],
        "transcript": "00:00 hello",
    }

    report = normalize_w4_report(raw)

    assert "transcript" not in report
    assert report["phases"]["why"]["score"] == 30
    assert report["phases"]["why"]["max_score"] == 38
    assert report["phases"]["who"]["score"] == 0
    assert report["quick_wins"][0]["points_worth"] == 5
    assert report_title(report) == "Sam - Dana (Playmaker: 78/100)"


def test_normalize_derives_missing_total_and_rating():
    raw = {
        "overall_performance": {"summary": "Partial"},
        "phases": {"why": {"checkpoints": [{"score": 5}, {"score": 5}]}},
    }

    overall = normalize_w4_report(raw)["overall_performance"]

    assert overall["total_score"] == 10
    assert overall["rating"] == "Below Prospect"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(85, 85), (72.5, 72.5), ("85", 85), ("85/100", 85), (" 61.0 points", 61), ("N/A", None), (None, None), (True, None)],
)
def test_parse_score(value, expected):
    assert parse_score(value) == expected


def test_normalize_tolerates_non_numeric_total():
    raw = {
        "rep_name": "Sam",
        "client_name": "Dana",
        "overall_performance": {"total_score": "N/A", "summary": "x"},
        "phases": {"what": {"checkpoints": [{"score": 20}, {"score": 12}]}},
    }

    report = normalize_w4_report(raw)
    overall = report["overall_performance"]

    assert overall["total_score"] == 27
    assert overall["rating"] == "Below Prospect"
    assert report_title(report) == "Sam - Dana (Below Prospect: 27/100)"


def test_normalize_reads_score_with_denominator():
    overall = normalize_w4_report({"overall_performance": {"total_score": "85/100"}})["overall_performance"]

    assert overall["total_score"] == 85
    assert overall["rating"] == "Playmaker"


def test_prompt_uses_default_rubric_and_locked_format():
    prompt = build_w4_prompt(None, 3725)

    assert prompt.startswith(W4_EDITABLE_CONTENT)
    assert W4_OUTPUT_FORMAT in prompt
    assert "1:02:05" in prompt
    assert "(62 minutes)" in prompt


def test_prompt_override_keeps_output_format():
    prompt = build_w4_prompt("Custom rubric", None)

    assert prompt.startswith("Custom rubric")
    assert W4_OUTPUT_FORMAT in prompt
    assert "AUDIO DURATION" not in prompt
