"""Thin Gemini client wrapper for audio transcription and analysis calls."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Sequence

from fastapi.concurrency import iterate_in_threadpool, run_in_threadpool
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.config.settings import settings

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "rate limit", "quota")

Part = Any


class GeminiInvocationError(RuntimeError):
    """Raised when a Gemini request fails."""

    def __init__(self, message: str, *, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited


@dataclass(frozen=True)
class GenerationResult:
    """Text output plus the usage metadata reported by the model."""

    text: str
    input_tokens: int
    output_tokens: int
    model: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def is_rate_limited(exc: BaseException) -> bool:
    """Return True when an SDK error signals HTTP 429 / quota exhaustion."""

    if getattr(exc, "code", None) == 429:
        return True
    message = str(exc)
    return any(marker.lower() in message.lower() for marker in _RATE_LIMIT_MARKERS)


def _wrap_error(exc: Exception) -> GeminiInvocationError:
    return GeminiInvocationError(str(exc), rate_limited=is_rate_limited(exc))


def _usage_counts(usage: Any) -> tuple[int, int]:
    if usage is None:
        return 0, 0
    return (
        int(getattr(usage, "prompt_token_count", 0) or 0),
        int(getattr(usage, "candidates_token_count", 0) or 0),
    )


def _state_name(file_obj: Any) -> str:
    state = getattr(file_obj, "state", None)
    return str(getattr(state, "name", state) or "")


def audio_part(data: bytes, mime_type: str) -> Part:
    """Inline audio payload for a single request."""

    return types.Part.from_bytes(data=data, mime_type=mime_type)


def file_part(file_uri: str, mime_type: str) -> Part:
    """Reference to audio previously uploaded through the Files API."""

    return types.Part.from_uri(file_uri=file_uri, mime_type=mime_type)


def text_part(text: str) -> Part:
    return types.Part.from_text(text=text)


class GeminiClient:
    """Invoke Google Gemini models with standard configuration."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self.model = model or settings.gemini.model

        if api_key is None and settings.gemini.api_key:
            api_key = settings.gemini.api_key.get_secret_value()

        self._client: genai.Client | None = None
        if api_key:
            try:
                self._client = genai.Client(api_key=api_key)
            except Exception as exc:  # pragma: no cover - configuration issue
                logger.warning("Could not initialise Gemini client: %s", exc)

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> genai.Client:
        if self._client is None:
            raise GeminiInvocationError("Gemini API key not configured")
        return self._client

    def _config(
        self,
        temperature: float,
        max_output_tokens: int,
        json_output: bool,
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json" if json_output else None,
        )

    async def generate(
        self,
        parts: Sequence[Part],
        *,
        temperature: float,
        max_output_tokens: int,
        json_output: bool = False,
    ) -> GenerationResult:
        """Run a single `generate_content` call and return text plus token usage."""

        client = self._require_client()
        config = self._config(temperature, max_output_tokens, json_output)

        def _call() -> GenerationResult:
            response = client.models.generate_content(
                model=self.model,
                contents=list(parts),
                config=config,
            )
            input_tokens, output_tokens = _usage_counts(response.usage_metadata)
            return GenerationResult(
                text=(response.text or "").strip(),
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                model=self.model,
            )

        try:
            return await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise _wrap_error(exc) from exc

    async def generate_stream(
        self,
        parts: Sequence[Part],
        *,
        temperature: float,
        max_output_tokens: int,
        json_output: bool = False,
        on_chunk: Callable[[int, int], Awaitable[None]] | None = None,
        progress_every: int = 5,
    ) -> GenerationResult:
        """Stream a long response, reporting `(chunk_count, chars)` every few chunks."""

        client = self._require_client()
        config = self._config(temperature, max_output_tokens, json_output)

        text_fragments: list[str] = []
        input_tokens = output_tokens = 0
        chunk_count = 0
        try:
            stream = await run_in_threadpool(
                client.models.generate_content_stream,
                model=self.model,
                contents=list(parts),
                config=config,
            )
            chunks: AsyncIterator[Any] = iterate_in_threadpool(stream)
            async for chunk in chunks:
                text_fragments.append(chunk.text or "")
                chunk_count += 1
                # usage metadata is cumulative; the last chunk carries the totals
                chunk_in, chunk_out = _usage_counts(chunk.usage_metadata)
                input_tokens = chunk_in or input_tokens
                output_tokens = chunk_out or output_tokens
                if on_chunk is not None and chunk_count % progress_every == 0:
                    await on_chunk(chunk_count, sum(len(t) for t in text_fragments))
        except genai_errors.APIError as exc:
            raise _wrap_error(exc) from exc

        return GenerationResult(
            text="".join(text_fragments).strip(),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=self.model,
        )

    async def upload_file(self, data: bytes, mime_type: str) -> Any:
        """Upload audio to the Files API and return the file handle."""

        client = self._require_client()
        try:
            uploaded = await run_in_threadpool(
                client.files.upload,
                file=io.BytesIO(data),
                config={"mime_type": mime_type},
            )
        except genai_errors.APIError as exc:
            raise _wrap_error(exc) from exc

        if not getattr(uploaded, "uri", None):
            raise GeminiInvocationError("Failed to upload file to Gemini")
        return uploaded

    async def wait_until_active(
        self,
        file_obj: Any,
        *,
        poll_interval: float,
        sleep: Callable[[float], Awaitable[None]],
        on_wait: Callable[[], Awaitable[None]] | None = None,
    ) -> Any:
        """Poll the uploaded file while Gemini is still processing it."""

        client = self._require_client()
        current = file_obj
        while _state_name(current) == "PROCESSING":
            logger.info("Waiting for Gemini file processing name=%s", current.name)
            if on_wait is not None:
                await on_wait()
            await sleep(poll_interval)
            try:
                current = await run_in_threadpool(client.files.get, name=current.name)
            except genai_errors.APIError as exc:
                raise _wrap_error(exc) from exc

        if _state_name(current) == "FAILED":
            raise GeminiInvocationError("File processing failed")
        return current

    async def delete_file(self, name: str) -> None:
        """Best-effort removal of an uploaded file (Gemini expires them after 48h)."""

        if self._client is None or not name:
            return
        try:
            await run_in_threadpool(self._client.files.delete, name=name)
        except Exception as exc:  # pragma: no cover - cleanup only
            logger.debug("Ignoring Gemini file cleanup failure name=%s: %s", name, exc)


__all__ = [
    "GeminiClient",
    "GeminiInvocationError",
    "GenerationResult",
    "audio_part",
    "file_part",
    "is_rate_limited",
    "text_part",
]
