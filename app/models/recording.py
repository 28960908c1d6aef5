"""SQLAlchemy model for uploaded call recordings."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, Boolean, Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import Base


class RecordingStatus(str, Enum):
    """Lifecycle of a recording from upload to analysed."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


class Recording(Base):
    __tablename__ = "recordings"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    user_id = Column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_path = Column(Text, nullable=False)
    file_name = Column(String(512), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    duration = Column(Float, nullable=True)
    status = Column(
        SqlEnum(RecordingStatus, name="recording_status"),
        nullable=False,
        default=RecordingStatus.UPLOADING,
        index=True,
    )
    analysis_file_path = Column(Text, nullable=True)
    analysis_file_size = Column(BigInteger, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
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

    user = relationship("User", back_populates="recordings")
    analysis = relationship(
        "AudioAnalysis",
        back_populates="recording",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def source_path(self) -> str:
        """Compressed analysis copy when present, otherwise the original upload."""

        return self.analysis_file_path or self.file_path


__all__ = ["Recording", "RecordingStatus"]
