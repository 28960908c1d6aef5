"""Password hashing and the JWT access tokens issued to profiles."""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.config.settings import settings
from app.models.user import User, UserRole

_SALT_BYTES = 16
_ITERATIONS = 120_000


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _ITERATIONS)


def hash_password(password: str) -> str:
    """Return `base64(salt + PBKDF2-SHA256 digest)`."""

    salt = os.urandom(_SALT_BYTES)
    return base64.b64encode(salt + _derive(password, salt)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        decoded = base64.b64decode(hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False

    salt, stored = decoded[:_SALT_BYTES], decoded[_SALT_BYTES:]
    return hmac.compare_digest(_derive(password, salt), stored)


class AuthenticationError(Exception):
    """Raised when a JWT cannot be decoded or is otherwise invalid."""


class TokenUser(BaseModel):
    """Profile snapshot embedded in the token so middleware can log without a query."""

    id: int
    name: str = ""
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime | None = None
    user: TokenUser | None = None


def create_access_token(
    subject: str,
    user: User | None = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token for `subject`, carrying the profile claim when `user` is given."""

    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(
        minutes=settings.security.access_token_expires_minutes
    )
    claims: dict[str, object] = {"sub": subject, "exp": now + expires_delta, "iat": now}

    if user is not None:
        claims["user"] = TokenUser(
            id=user.id,
            name=user.full_name or "",
            role=user.role or UserRole.USER,
        ).model_dump(mode="json")

    return jwt.encode(
        claims,
        settings.security.jwt_secret_key.get_secret_value(),
        algorithm=settings.security.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenPayload:
    """Decode and validate a JWT access token, returning its payload."""

    try:
        payload = jwt.decode(
            token,
            settings.security.jwt_secret_key.get_secret_value(),
            algorithms=[settings.security.jwt_algorithm],
        )
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid authentication token") from exc


__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "TokenUser",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
