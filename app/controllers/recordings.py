"""Recording upload and library endpoints."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy import select

from app.config.settings import settings
from app.controllers.dependencies import CurrentUserDep, SessionDep, get_owned_recording
from app.models.recording import Recording, RecordingStatus
from app.pipelines.analysis import read_audio_bytes, resolve_content_type
from app.services.storage import (
    StorageError,
    create_signed_url,
    delete_audio,
    upload_recording_audio,
)
from app.views import AudioUrlResponse, RecordingArchiveRequest, RecordingResponse

router = APIRouter(prefix="/recordings", tags=["recordings"])

logger = logging.getLogger(__name__)

_AUDIO_FILE_UPLOAD = File(...)
_DURATION_FORM = Form(None)


@router.post("/", response_model=RecordingResponse, status_code=status.HTTP_201_CREATED)
async def upload_recording(
    current_user: CurrentUserDep,
    session: SessionDep,
    file: UploadFile = _AUDIO_FILE_UPLOAD,
    duration: Optional[float] = _DURATION_FORM,
) -> RecordingResponse:
    """Store the audio in S3 and register the recording."""

    content_type = resolve_content_type(file)
    file_name = file.filename or "recording"
    audio_bytes = await read_audio_bytes(file)

    try:
        object_key = await upload_recording_audio(
            current_user.id,
            file_name,
            audio_bytes,
            content_type=content_type,
        )
    except StorageError as exc:
        logger.error("Recording upload failed user=%s: %s", current_user.id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to store recording audio",
        ) from exc

    recording = Recording(
        user_id=current_user.id,
        file_path=object_key,
        file_name=file_name,
        file_size=len(audio_bytes),
        duration=duration if duration and duration > 0 else None,
        status=RecordingStatus.DONE,
        is_archived=False,
    )
    session.add(recording)
    await session.commit()
    await session.refresh(recording)

    logger.info("Recording stored id=%s user=%s bytes=%d", recording.id, current_user.id, len(audio_bytes))
    return RecordingResponse.model_validate(recording)


@router.get("/", response_model=list[RecordingResponse])
async def list_recordings(
    current_user: CurrentUserDep,
    session: SessionDep,
    archived: bool = False,
) -> list[RecordingResponse]:
    result = await session.execute(
        select(Recording)
        .where(Recording.user_id == current_user.id, Recording.is_archived.is_(archived))
        .order_by(Recording.created_at.desc())
    )
    return [RecordingResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/{recording_id}", response_model=RecordingResponse)
async def get_recording(
    recording_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> RecordingResponse:
    recording = await get_owned_recording(recording_id, session, current_user)
    return RecordingResponse.model_validate(recording)


@router.patch("/{recording_id}/archive", response_model=RecordingResponse)
async def archive_recording(
    recording_id: UUID,
    payload: RecordingArchiveRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> RecordingResponse:
    recording = await get_owned_recording(recording_id, session, current_user)
    recording.is_archived = payload.archived
    await session.commit()
    await session.refresh(recording)
    return RecordingResponse.model_validate(recording)


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(
    recording_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> Response:
    recording = await get_owned_recording(recording_id, session, current_user)

    for object_key in {recording.file_path, recording.analysis_file_path} - {None}:
        try:
            await delete_audio(object_key)
        except StorageError as exc:
            logger.warning("Could not delete audio object %s: %s", object_key, exc)

    await session.delete(recording)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{recording_id}/audio-url", response_model=AudioUrlResponse)
async def get_audio_url(
    recording_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> AudioUrlResponse:
    """Signed playback URL for the original upload."""

    recording = await get_owned_recording(recording_id, session, current_user)
    expires_in = settings.s3.signed_url_expires_seconds
    try:
        url = await create_signed_url(recording.file_path, expires_in)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create audio URL",
        ) from exc
    return AudioUrlResponse(url=url, expiresIn=expires_in)
