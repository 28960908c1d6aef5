"""Service layer helpers for external integrations."""

from .gemini_client import (
    GeminiClient,
    GeminiInvocationError,
    GenerationResult,
)
from .storage import (
    StorageError,
    create_signed_url,
    delete_audio,
    download_audio,
    upload_recording_audio,
)
from .token_usage import estimate_cost, record_token_usage

__all__ = [
    "GeminiClient",
    "GeminiInvocationError",
    "GenerationResult",
    "StorageError",
    "create_signed_url",
    "delete_audio",
    "download_audio",
    "upload_recording_audio",
    "estimate_cost",
    "record_token_usage",
]
