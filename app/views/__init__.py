"""Pydantic schemas used as views in the MVC architecture."""

from .admin import (
    AdminPromptLookupResponse,
    AdminPromptResponse,
    AdminPromptUpsertRequest,
    DefaultPromptResponse,
    TokenStatsResponse,
)
from .analysis import AnalysisResponse, AnalysisStartResponse
from .auth import LoginRequest, TokenResponse
from .common import ErrorResponse, SuccessResponse
from .recordings import AudioUrlResponse, RecordingArchiveRequest, RecordingResponse
from .users import (
    UserChangePasswordRequest,
    UserRegistrationRequest,
    UserRegistrationResponse,
    UserResponse,
)

__all__ = [
    "AdminPromptLookupResponse",
    "AdminPromptResponse",
    "AdminPromptUpsertRequest",
    "DefaultPromptResponse",
    "TokenStatsResponse",
    "AnalysisResponse",
    "AnalysisStartResponse",
    "AudioUrlResponse",
    "RecordingArchiveRequest",
    "RecordingResponse",
    "UserRegistrationRequest",
    "UserRegistrationResponse",
    "UserResponse",
    "UserChangePasswordRequest",
    "ErrorResponse",
    "SuccessResponse",
    "LoginRequest",
    "TokenResponse",
]
