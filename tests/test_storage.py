"""Object keys, MIME mapping and upload content-type handling."""

from __future__ import annotations

import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from app.pipelines.analysis.ingestion import resolve_content_type
from app.services import storage
from app.services.storage import build_object_key, guess_audio_mime_type


def _upload(filename: str | None, content_type: str | None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(file=io.BytesIO(b"data"), filename=filename, headers=headers)


@pytest.mark.parametrize(
    ("filename", "content_type", "mime"),
    [
        ("recording", "audio/webm", "audio/webm"),
        ("recording", "audio/webm;codecs=opus", "audio/webm"),
        ("blob", "video/webm", "audio/webm"),
        ("clip", "video/mp4", "audio/mp4"),
        ("voice", "audio/x-m4a", "audio/mp4"),
        ("call", "audio/aac", "audio/aac"),
        ("call.wav", "audio/webm", "audio/wav"),
        ("recording", None, "audio/mpeg"),
    ],
)
def test_object_key_keeps_the_real_container(filename, content_type, mime):
    key = build_object_key(7, filename, content_type)

    assert key.startswith("7/")
    assert guess_audio_mime_type(key) == mime


def test_aac_extension_maps_to_aac():
    assert build_object_key(1, "Call.AAC").endswith(".aac")
    assert guess_audio_mime_type("1/x.aac") == "audio/aac"


@pytest.mark.asyncio
async def test_upload_uses_content_type_for_key(monkeypatch):
    calls = []

    class FakeS3:
        def put_object(self, **kwargs):
            calls.append(kwargs)

    monkeypatch.setattr(storage, "_s3_client", lambda: FakeS3())

    key = await storage.upload_recording_audio(3, "recording", b"webm", content_type="audio/webm")

    assert key.endswith(".webm")
    assert calls[0]["Key"] == key
    assert calls[0]["ContentType"] == "audio/webm"


@pytest.mark.parametrize(
    ("filename", "content_type", "expected"),
    [
        ("call.aac", "audio/aac", "audio/aac"),
        ("call.aac", "audio/x-aac", "audio/x-aac"),
        ("call.webm", "video/webm", "video/webm"),
        ("call.mp3", "application/octet-stream", "audio/mpeg"),
    ],
)
def test_resolve_content_type_accepts_audio(filename, content_type, expected):
    assert resolve_content_type(_upload(filename, content_type)) == expected


def test_resolve_content_type_rejects_documents():
    with pytest.raises(HTTPException) as excinfo:
        resolve_content_type(_upload("notes.pdf", "application/pdf"))

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "Unsupported audio format"
