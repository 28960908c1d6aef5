"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .admin_prompt import AdminPrompt  # noqa: F401
from .analysis import AudioAnalysis, ProcessingStage, ProcessingStatus  # noqa: F401
from .log import RequestLog  # noqa: F401
from .recording import Recording, RecordingStatus  # noqa: F401
from .token_usage import TokenUsageLog  # noqa: F401
from .user import User, UserRole  # noqa: F401

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Recording",
    "RecordingStatus",
    "AudioAnalysis",
    "ProcessingStatus",
    "ProcessingStage",
    "TokenUsageLog",
    "AdminPrompt",
    "RequestLog",
]
