"""SQLAlchemy model for AI analyses of a recording."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from app.models.base import Base


class ProcessingStatus(str, Enum):
    """Coarse status polled by the dashboard."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


class ProcessingStage(str, Enum):
    """Finer grained step shown by the progress stepper."""

    PENDING = "pending"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


class AudioAnalysis(Base):
    __tablename__ = "audio_analyses"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    recording_id = Column(
        UUID(as_uuid=True),
        ForeignKey("recordings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # progress
    processing_status = Column(String(20), nullable=False, default=ProcessingStatus.PENDING.value, index=True)
    processing_stage = Column(String(20), nullable=False, default=ProcessingStage.PENDING.value, index=True)
    total_chunks = Column(Integer, nullable=False, default=0)
    completed_chunks = Column(Integer, nullable=False, default=0)
    current_chunk_message = Column(Text, nullable=True)
    sections = Column(JSONB, nullable=False, default=list)
    error_message = Column(Text, nullable=True)

    # report
    transcript = Column(Text, nullable=False, default="")
    title = Column(Text, nullable=False, default="")
    summary = Column(Text, nullable=False, default="")
    timeline = Column(JSONB, nullable=False, default=list)
    main_topics = Column(JSONB, nullable=False, default=list)
    glossary = Column(JSONB, nullable=False, default=list)
    insights = Column(JSONB, nullable=False, default=list)
    conclusion = Column(Text, nullable=False, default="")
    w4_report = Column(JSONB, nullable=True)
    language = Column(String(10), nullable=False, default="en")
    confidence_score = Column(Float, nullable=False, default=0.0)
    duration_analyzed = Column(Float, nullable=True)

    # token accounting
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    total_tokens = Column(Integer, nullable=False, default=0)
    model_used = Column(String(64), nullable=True)
    estimated_cost_usd = Column(Numeric(10, 6), nullable=False, default=0)

    transcription_completed_at = Column(DateTime, nullable=True)
    analysis_completed_at = Column(DateTime, nullable=True)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
        index=True,
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
        onupdate=datetime.utcnow,
    )

    recording = relationship("Recording", back_populates="analysis")


__all__ = ["AudioAnalysis", "ProcessingStatus", "ProcessingStage"]
