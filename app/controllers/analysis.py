"""Analysis endpoints: start background jobs and poll their progress.

Stage map: `app.pipelines.analysis.flow.AnalysisPipeline`. Both POST
endpoints only prepare the analysis row and queue the runner; the HTTP
response returns before any model call is made.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.controllers.dependencies import CurrentUserDep, SessionDep, get_owned_recording
from app.models.analysis import AudioAnalysis, ProcessingStage, ProcessingStatus
from app.models.recording import Recording, RecordingStatus
from app.pipelines.analysis import AnalysisJob, AnalysisPipeline, ChunkedAnalysisRunner, W4AnalysisRunner
from app.pipelines.analysis.chunking import count_chunks, estimate_total_minutes
from app.views import AnalysisResponse, AnalysisStartResponse, ErrorResponse

router = APIRouter(prefix="/analysis", tags=["analysis"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(AnalysisPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_TRANSCRIPT_RESET: dict[str, Any] = {
    "sections": [],
    "transcript": "",
    "timeline": [],
    "main_topics": [],
    "glossary": [],
    "insights": [],
    "conclusion": "",
    "transcription_completed_at": None,
}


def get_chunked_runner() -> ChunkedAnalysisRunner:
    return ChunkedAnalysisRunner()


def get_w4_runner() -> W4AnalysisRunner:
    return W4AnalysisRunner()


_START_ERRORS: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}

ChunkedRunnerDep = Annotated[ChunkedAnalysisRunner, Depends(get_chunked_runner)]
W4RunnerDep = Annotated[W4AnalysisRunner, Depends(get_w4_runner)]


async def _analysis_for(session: AsyncSession, recording_id: UUID) -> AudioAnalysis | None:
    result = await session.execute(
        select(AudioAnalysis).where(AudioAnalysis.recording_id == recording_id)
    )
    return result.scalar_one_or_none()


async def _prepare_analysis(
    session: AsyncSession,
    recording: Recording,
    *,
    stage: ProcessingStage,
    total_chunks: int,
    message: str,
    reset: dict[str, Any],
) -> AudioAnalysis:
    """Create or reset the analysis row; 409 while another job is running on it."""

    analysis = await _analysis_for(session, recording.id)
    if analysis is not None and analysis.processing_status == ProcessingStatus.PROCESSING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Analysis already in progress",
        )

    if analysis is None:
        analysis = AudioAnalysis(recording_id=recording.id)
        session.add(analysis)

    analysis.processing_status = ProcessingStatus.PROCESSING.value
    analysis.processing_stage = stage.value
    analysis.total_chunks = total_chunks
    analysis.completed_chunks = 0
    analysis.current_chunk_message = message
    analysis.error_message = None
    for field, value in reset.items():
        setattr(analysis, field, value)

    recording.status = RecordingStatus.PROCESSING
    await session.commit()
    await session.refresh(analysis)
    return analysis


def _job_for(analysis: AudioAnalysis, recording: Recording) -> AnalysisJob:
    return AnalysisJob(
        analysis_id=analysis.id,
        recording_id=recording.id,
        user_id=recording.user_id,
        file_path=recording.source_path,
        total_chunks=analysis.total_chunks,
        duration_seconds=recording.duration,
        file_size_bytes=int(recording.analysis_file_size or recording.file_size or 0),
    )


@router.post(
    "/{recording_id}/transcribe",
    response_model=AnalysisStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=_START_ERRORS,
)
async def start_transcription(
    recording_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: CurrentUserDep,
    session: SessionDep,
    runner: ChunkedRunnerDep,
) -> AnalysisStartResponse:
    """Queue the chunked transcription + summary job."""

    recording = await get_owned_recording(recording_id, session, current_user)
    file_size = int(recording.analysis_file_size or recording.file_size or 0)
    total_chunks = count_chunks(
        estimate_total_minutes(recording.duration, file_size),
        settings.analysis.chunk_duration_minutes,
    )

    analysis = await _prepare_analysis(
        session,
        recording,
        stage=ProcessingStage.TRANSCRIBING,
        total_chunks=total_chunks,
        message="Starting...",
        reset=_TRANSCRIPT_RESET,
    )
    job = _job_for(analysis, recording)
    background_tasks.add_task(runner.run, job)

    logger.info(
        "Transcription queued analysis=%s recording=%s chunks=%d",
        analysis.id,
        recording.id,
        total_chunks,
    )
    return AnalysisStartResponse(message="Processing started", analysisId=analysis.id)


@router.post(
    "/{recording_id}/w4",
    response_model=AnalysisStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=_START_ERRORS,
)
async def start_w4_analysis(
    recording_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: CurrentUserDep,
    session: SessionDep,
    runner: W4RunnerDep,
) -> AnalysisStartResponse:
    """Queue the single-pass W4 scoring job."""

    recording = await get_owned_recording(recording_id, session, current_user)
    analysis = await _prepare_analysis(
        session,
        recording,
        stage=ProcessingStage.ANALYZING,
        total_chunks=1,
        message="Preparing audio for analysis...",
        reset={"w4_report": None},
    )
    job = _job_for(analysis, recording)
    background_tasks.add_task(runner.run, job)

    logger.info("W4 analysis queued analysis=%s recording=%s", analysis.id, recording.id)
    return AnalysisStartResponse(message="Processing started", analysisId=analysis.id)


@router.get("/{recording_id}", response_model=AnalysisResponse)
async def get_analysis(
    recording_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> AnalysisResponse:
    """Polling endpoint for the dashboard."""

    recording = await get_owned_recording(recording_id, session, current_user)
    analysis = await _analysis_for(session, recording.id)
    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Analysis not found",
        )
    return AnalysisResponse.model_validate(analysis)
