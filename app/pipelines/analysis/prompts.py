"""Prompt builders for the chunked transcription flow."""

from __future__ import annotations

from typing import Sequence

from .chunking import format_range
from .types import ChunkWindow, TranscriptSection


def chunk_prompt(window: ChunkWindow, total_chunks: int, previous_summary: str = "") -> str:
    """Ask for one window of the call in the four-section labelled format."""

    time_range = format_range(window)
    context = ""
    if window.index > 0 and previous_summary:
        context = f"\nPREVIOUS CONTEXT (summary of what happened before):\n{previous_summary}\n"

    return f"""You are transcribing a section of a recorded sales call.

IMPORTANT: Focus on the time range {time_range} (chunk {window.index + 1} of {total_chunks}).
{context}
Please provide:
1. A descriptive TITLE for this section
2. The full TRANSCRIPT of what is said in this time range
3. A brief SUMMARY (2-3 sentences)
4. KEY TOPICS discussed (3-5 topics)

Format your response EXACTLY like this:
===TITLE===
[Section title]
===TRANSCRIPT===
[Full transcript with speaker labels like "Speaker 1:" or names if mentioned]
===SUMMARY===
[Brief 2-3 sentence summary]
===TOPICS===
[Topic 1, Topic 2, Topic 3]
===END===

Only transcribe content from approximately {time_range}. Be thorough and accurate."""


def final_analysis_prompt(sections: Sequence[TranscriptSection]) -> str:
    """Summarise the whole call from the per-chunk summaries."""

    summaries = "\n\n".join(
        f"[{s.timestamp_start} - {s.timestamp_end}] {s.title}:\n{s.summary}" for s in sections
    )
    return f"""Analyze this recording based on the following section summaries:

{summaries}

Provide a comprehensive analysis in JSON format:
{{
  "title": "Overall title for the recording",
  "summary": "3-4 sentence comprehensive summary",
  "main_topics": ["topic1", "topic2", "topic3"],
  "glossary": [{{"term": "Term", "definition": "Definition"}}],
  "insights": [
    {{"type": "strength", "title": "Title", "description": "Description"}},
    {{"type": "improvement", "title": "Title", "description": "Description"}},
    {{"type": "tip", "title": "Title", "description": "Description"}}
  ],
  "conclusion": "Key takeaways and recommendations"
}}

Return ONLY valid JSON."""


__all__ = ["chunk_prompt", "final_analysis_prompt"]
