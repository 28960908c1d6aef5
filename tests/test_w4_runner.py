"""W4 runner driven with fakes."""

from __future__ import annotations

import json
from uuid import uuid4

import pytest

from app.pipelines.analysis.types import AnalysisJob
from app.pipelines.analysis.w4 import W4AnalysisRunner
from app.services.gemini_client import GeminiInvocationError
from conftest import FakeGeminiClient

REPORT = {
    "client_name": "Dana",
    "rep_name": "Sam",
    "company_name": "Acme Roofing",
    "phases": {
        "why": {"score": 30, "max_score": 38, "checkpoints": [{"name": "Rapport", "score": 5}]},
    },
    "overall_performance": {"total_score": 72, "rating": "Starter", "summary": "Solid discovery."},
    "quick_wins": ["Ask for the sale earlier"],
    "transcript": "should be dropped",
}


def _job() -> AnalysisJob:
    return AnalysisJob(
        analysis_id=uuid4(),
        recording_id=uuid4(),
        user_id=3,
        file_path="3/call.wav",
        total_chunks=1,
        duration_seconds=1800,
        file_size_bytes=1024,
    )


def _runner(client, progress, sleep, prompt=None):
    async def download(path: str) -> bytes:
        return b"wav-bytes"

    async def load_prompt():
        return prompt

    return W4AnalysisRunner(
        client,
        downloader=download,
        prompt_loader=load_prompt,
        progress_factory=lambda job: progress,
        sleep=sleep,
    )


@pytest.mark.asyncio
async def test_w4_success_finishes_with_normalised_report(fake_progress, fake_sleep):
    client = FakeGeminiClient([json.dumps(REPORT)])

    await _runner(client, fake_progress, fake_sleep).run(_job())

    assert fake_progress.failed is None
    assert fake_progress.finish_message == "W4 Analysis complete!"
    assert client.uploaded == [(b"wav-bytes", "audio/wav")]
    assert client.deleted == ["files/abc"]
    assert fake_sleep.calls == [5.0]

    messages = [message for _, message in fake_progress.messages]
    assert messages == [
        "Preparing audio for analysis...",
        "AI is processing audio file...",
        "AI is analyzing the call using W4 methodology...",
        "Analyzing... (2k)",
    ]

    fields = fake_progress.finished
    assert fields["title"] == "Sam - Dana (Starter: 72/100)"
    assert fields["summary"] == "Solid discovery."
    assert fields["confidence_score"] == 0.9
    assert fields["duration_analyzed"] == 1800
    assert fields["total_tokens"] == 150
    assert "transcript" not in fields["w4_report"]
    assert fields["w4_report"]["phases"]["what"]["max_score"] == 27
    assert fake_progress.usage == [("w4_analysis", None, 150)]


@pytest.mark.asyncio
async def test_w4_prompt_uses_admin_override_and_duration(fake_progress, fake_sleep):
    client = FakeGeminiClient([json.dumps(REPORT)])

    await _runner(client, fake_progress, fake_sleep, prompt="Custom rubric").run(_job())

    prompt = client.calls[0]["parts"][1].text
    assert prompt.startswith("Custom rubric\n\n")
    assert "AUDIO DURATION: This recording is 30:00 long (30 minutes)." in prompt
    assert client.calls[0]["temperature"] == 0.3


@pytest.mark.asyncio
async def test_w4_failure_marks_error_and_cleans_up(fake_progress, fake_sleep):
    client = FakeGeminiClient([GeminiInvocationError("model exploded")])

    await _runner(client, fake_progress, fake_sleep).run(_job())

    assert fake_progress.failed == "model exploded"
    assert fake_progress.finished is None
    assert client.deleted == ["files/abc"]


@pytest.mark.asyncio
async def test_w4_unparseable_response_fails(fake_progress, fake_sleep):
    client = FakeGeminiClient(["I cannot help with that"])

    await _runner(client, fake_progress, fake_sleep).run(_job())

    assert fake_progress.failed == "Failed to parse AI response as JSON"
