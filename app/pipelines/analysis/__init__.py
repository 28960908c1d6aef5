"""Recording analysis pipeline package.

Modules follow the order in which an analysis executes:

0. `ingestion` - validate and read uploaded audio.
1. `chunking` - size the recording and plan 45 minute windows.
2. `prompts` / `w4_prompt` - build the Gemini prompts.
3. `parsing` - turn model responses into sections or JSON.
4. `report` / `scoring` - assemble transcript, timeline and W4 totals.
5. `runner` / `w4` - background jobs driving the model.
6. `progress` - persist state for dashboard polling.
7. `flow` - human-readable description of the stages.
"""

from .chunking import format_duration, format_range, format_timestamp, plan_chunks
from .flow import AnalysisPipeline, PipelineStage
from .ingestion import read_audio_bytes, resolve_content_type
from .parsing import AnalysisError, parse_chunk_response, parse_json_payload
from .progress import AnalysisProgress, DatabaseProgress
from .report import build_timeline, build_transcript, confidence_for, fallback_topics
from .runner import ChunkedAnalysisRunner
from .scoring import phase_totals, rating_for, recompute_total
from .types import AnalysisJob, ChunkWindow, TranscriptSection
from .w4 import W4AnalysisRunner, normalize_w4_report

__all__ = [
    "AnalysisError",
    "AnalysisJob",
    "AnalysisPipeline",
    "AnalysisProgress",
    "ChunkWindow",
    "ChunkedAnalysisRunner",
    "DatabaseProgress",
    "PipelineStage",
    "TranscriptSection",
    "W4AnalysisRunner",
    "build_timeline",
    "build_transcript",
    "confidence_for",
    "fallback_topics",
    "format_duration",
    "format_range",
    "format_timestamp",
    "normalize_w4_report",
    "parse_chunk_response",
    "parse_json_payload",
    "phase_totals",
    "plan_chunks",
    "rating_for",
    "read_audio_bytes",
    "recompute_total",
    "resolve_content_type",
]
