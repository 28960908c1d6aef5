"""Run the chunked analysis against a local audio file, printing progress.

Usage: python scripts/analyze_local.py path/to/call.mp3 [duration_seconds]

Needs GEMINI_API_KEY; no database or S3 access is made.
"""

import asyncio
import json
import os
import sys
from pathlib import Path
from uuid import uuid4

# Add project root to path so we can import app
sys.path.append(os.getcwd())

from app.pipelines.analysis import AnalysisJob, ChunkedAnalysisRunner


class ConsoleProgress:
    async def mark_processing(self, completed, message):
        print(f"[{completed if completed is not None else '-'}] {message}")

    async def save_sections(self, sections, completed, message):
        print(f"[{completed}] {message}: {sections[-1].title}")

    async def finish(self, fields, message):
        print(f"\n{message}")
        print(json.dumps({k: v for k, v in fields.items() if k != "transcript"}, indent=2, default=str))
        print("\n--- Transcript ---")
        print(fields.get("transcript", ""))

    async def fail(self, message):
        print(f"\nAnalysis failed: {message}")

    async def record_usage(self, request_type, result, chunk_index=None):
        print(f"    tokens {request_type} chunk={chunk_index}: {result.input_tokens} in / {result.output_tokens} out")


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/analyze_local.py path/to/call.mp3 [duration_seconds]")
        return

    path = Path(sys.argv[1])
    if not path.exists():
        print(f"File '{path}' not found.")
        return
    duration = float(sys.argv[2]) if len(sys.argv) > 2 else None

    async def read_local(file_path):
        return Path(file_path).read_bytes()

    progress = ConsoleProgress()
    runner = ChunkedAnalysisRunner(
        downloader=read_local,
        progress_factory=lambda job: progress,
    )
    job = AnalysisJob(
        analysis_id=uuid4(),
        recording_id=uuid4(),
        user_id=None,
        file_path=str(path),
        total_chunks=0,
        duration_seconds=duration,
        file_size_bytes=path.stat().st_size,
    )
    await runner.run(job)


if __name__ == "__main__":
    asyncio.run(main())
