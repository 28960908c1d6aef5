"""Utility helpers for the CallCoach backend."""

from .security import (
    AuthenticationError,
    TokenPayload,
    TokenUser,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "TokenUser",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
