"""S3 storage helpers for recorded call audio."""

from __future__ import annotations

from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.config.settings import settings


class StorageError(RuntimeError):
    """Raised when audio persistence or retrieval in S3 fails."""


_AUDIO_MIME_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
}

# Suffix for uploads whose filename carries no usable extension (browser recorder blobs).
_CONTENT_TYPE_SUFFIXES = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/mp4": ".m4a",
    "audio/m4a": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/flac": ".flac",
    "audio/aac": ".aac",
    "audio/x-aac": ".aac",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}


@lru_cache(maxsize=1)
def _s3_client() -> Any:
    """Instantiate the S3 client once, using explicit credentials when configured."""

    client_kwargs: dict[str, Any] = {"region_name": settings.s3.region}
    if settings.s3.access_key and settings.s3.secret_key:
        client_kwargs["aws_access_key_id"] = settings.s3.access_key
        client_kwargs["aws_secret_access_key"] = settings.s3.secret_key
    return boto3.client("s3", **client_kwargs)


def _bucket() -> str:
    bucket = settings.s3.bucket_name
    if not bucket:
        raise StorageError("S3 bucket name is not configured.")
    return bucket


def guess_audio_mime_type(file_path: str) -> str:
    """Map an object key to the MIME type the AI model expects (mp3 by default)."""

    suffix = PurePosixPath(file_path).suffix.lower()
    return _AUDIO_MIME_TYPES.get(suffix, "audio/mpeg")


def build_object_key(user_id: int, filename: str, content_type: str | None = None) -> str:
    """Return a collision-free key under the owner's prefix.

    The suffix comes from the filename when it is a known audio extension,
    otherwise from the upload content type, so `guess_audio_mime_type` later
    recovers the real container.
    """

    suffix = PurePosixPath(filename or "").suffix.lower()
    if suffix not in _AUDIO_MIME_TYPES:
        normalized = (content_type or "").split(";", 1)[0].strip().lower()
        suffix = _CONTENT_TYPE_SUFFIXES.get(normalized, ".mp3")
    return f"{user_id}/{uuid4().hex}{suffix}"


async def upload_recording_audio(
    user_id: int,
    filename: str,
    audio_bytes: bytes,
    *,
    content_type: str | None = None,
) -> str:
    """Upload a recording and return its object key."""

    if not audio_bytes:
        raise StorageError("Audio payload for upload was empty.")

    bucket = _bucket()
    object_key = build_object_key(user_id, filename, content_type)
    try:
        await run_in_threadpool(
            _s3_client().put_object,
            Bucket=bucket,
            Key=object_key,
            Body=audio_bytes,
            ContentType=content_type or guess_audio_mime_type(object_key),
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"Failed to upload recording audio: {exc}") from exc

    return object_key


async def download_audio(object_key: str) -> bytes:
    """Fetch the full audio object into memory."""

    bucket = _bucket()

    def _read() -> bytes:
        response = _s3_client().get_object(Bucket=bucket, Key=object_key)
        return response["Body"].read()

    try:
        data = await run_in_threadpool(_read)
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"Failed to download audio '{object_key}': {exc}") from exc

    if not data:
        raise StorageError(f"Audio object '{object_key}' is empty.")
    return data


async def create_signed_url(object_key: str, expires_in: int | None = None) -> str:
    """Return a time-limited GET URL for playback."""

    bucket = _bucket()
    try:
        return await run_in_threadpool(
            _s3_client().generate_presigned_url,
            "get_object",
            Params={"Bucket": bucket, "Key": object_key},
            ExpiresIn=expires_in or settings.s3.signed_url_expires_seconds,
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"Failed to sign audio URL: {exc}") from exc


async def delete_audio(object_key: str) -> None:
    """Remove an audio object."""

    bucket = _bucket()
    try:
        await run_in_threadpool(_s3_client().delete_object, Bucket=bucket, Key=object_key)
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"Failed to delete audio '{object_key}': {exc}") from exc


__all__ = [
    "StorageError",
    "build_object_key",
    "create_signed_url",
    "delete_audio",
    "download_audio",
    "guess_audio_mime_type",
    "upload_recording_audio",
]
