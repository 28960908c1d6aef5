"""Per-request AI token usage log."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID

from app.models.base import Base


class TokenUsageLog(Base):
    __tablename__ = "token_usage_logs"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    user_id = Column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True, index=True)
    analysis_id = Column(
        UUID(as_uuid=True),
        ForeignKey("audio_analyses.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    recording_id = Column(
        UUID(as_uuid=True),
        ForeignKey("recordings.id", ondelete="CASCADE"),
        nullable=True,
    )
    # transcription_chunk | final_analysis | w4_analysis
    request_type = Column(String(40), nullable=False)
    chunk_index = Column(Integer, nullable=True)
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    total_tokens = Column(Integer, nullable=False, default=0)
    model_used = Column(String(64), nullable=False)
    estimated_cost_usd = Column(Numeric(10, 6), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


__all__ = ["TokenUsageLog"]
