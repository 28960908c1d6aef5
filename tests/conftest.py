"""Shared fakes for pipeline and API tests."""

from __future__ import annotations

from pathlib import Path
import sys
from datetime import datetime
from types import SimpleNamespace
from typing import Any
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.services.gemini_client import GeminiInvocationError, GenerationResult  # noqa: E402


class FakeGeminiClient:
    """Returns queued responses (or raises queued errors) in call order."""

    def __init__(self, responses: list[Any] | None = None, *, model: str = "gemini-2.5-flash") -> None:
        self.model = model
        self.configured = True
        self._responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.uploaded: list[tuple[bytes, str]] = []
        self.deleted: list[str] = []

    def _next(self) -> GenerationResult:
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, GenerationResult):
            return item
        return GenerationResult(text=item, input_tokens=100, output_tokens=50, model=self.model)

    async def generate(self, parts, *, temperature, max_output_tokens, json_output=False):
        self.calls.append(
            {
                "parts": list(parts),
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
                "json_output": json_output,
            }
        )
        return self._next()

    async def generate_stream(
        self,
        parts,
        *,
        temperature,
        max_output_tokens,
        json_output=False,
        on_chunk=None,
        progress_every=5,
    ):
        self.calls.append({"parts": list(parts), "temperature": temperature, "stream": True})
        if on_chunk is not None:
            await on_chunk(5, 2500)
        return self._next()

    async def upload_file(self, data, mime_type):
        self.uploaded.append((data, mime_type))
        return SimpleNamespace(name="files/abc", uri="https://files/abc", state="PROCESSING")

    async def wait_until_active(self, file_obj, *, poll_interval, sleep, on_wait=None):
        if on_wait is not None:
            await on_wait()
        await sleep(poll_interval)
        return SimpleNamespace(name=file_obj.name, uri=file_obj.uri, state="ACTIVE")

    async def delete_file(self, name):
        self.deleted.append(name)


class FakeProgress:
    """Records every progress call instead of writing to the database."""

    def __init__(self) -> None:
        self.messages: list[tuple[int | None, str]] = []
        self.saved: list[tuple[int, list[Any]]] = []
        self.usage: list[tuple[str, int | None, int]] = []
        self.finished: dict[str, Any] | None = None
        self.finish_message: str | None = None
        self.failed: str | None = None

    async def mark_processing(self, completed, message):
        self.messages.append((completed, message))

    async def save_sections(self, sections, completed, message):
        self.saved.append((completed, list(sections)))
        self.messages.append((completed, message))

    async def finish(self, fields, message):
        self.finished = dict(fields)
        self.finish_message = message

    async def fail(self, message):
        self.failed = message

    async def record_usage(self, request_type, result, chunk_index=None):
        self.usage.append((request_type, chunk_index, result.total_tokens))


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def rate_limit_error() -> GeminiInvocationError:
    return GeminiInvocationError("429 RESOURCE_EXHAUSTED", rate_limited=True)


@pytest.fixture
def fake_progress() -> FakeProgress:
    return FakeProgress()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


class FakeResult:
    def __init__(self, value=None) -> None:
        self._value = value

    def scalar_one_or_none(self):
        return self._value

    def scalars(self):
        return SimpleNamespace(all=lambda: list(self._value or []))


class FakeSession:
    """Minimal AsyncSession stand-in.

    `execute` always returns `result`; `get` looks rows up in `objects` by primary key.
    """

    def __init__(self, result=None, *, id_factory=uuid4, objects=None) -> None:
        self.result = result
        self._id_factory = id_factory
        self.objects: dict[Any, object] = dict(objects or {})
        self.added: list[object] = []
        self.deleted: list[object] = []
        self.statements: list[Any] = []
        self.commits = 0

    async def execute(self, statement):
        self.statements.append(statement)
        return FakeResult(self.result)

    async def get(self, model, key):
        obj = self.objects.get(key)
        return obj if isinstance(obj, model) else None

    async def delete(self, obj) -> None:
        self.deleted.append(obj)

    def add(self, obj) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        return None

    async def commit(self) -> None:
        self.commits += 1

    async def refresh(self, obj) -> None:
        if getattr(obj, "id", None) is None:
            obj.id = self._id_factory()
        for field in ("created_at", "updated_at"):
            if hasattr(type(obj), field) and getattr(obj, field, None) is None:
                setattr(obj, field, datetime(2024, 6, 1, 12, 0))
