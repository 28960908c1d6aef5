"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from cryptography.fernet import Fernet
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.config.settings import settings
from app.utils import AuthenticationError, decode_access_token

logger = logging.getLogger("app.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"

# Never persisted.
_UNPERSISTED_PATHS = ("/health", "/metrics")
_RECORDING_PATH = re.compile(r"/(?:recordings|analysis)/([0-9a-fA-F-]{36})")


@dataclass(slots=True)
class SessionContext:
    """Who is calling, derived from the bearer token."""

    identifier: str
    user_id: str
    role: Optional[str]
    started_at: datetime
    expires_at: Optional[datetime]
    fingerprint: str


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one console line per request and optionally persist it."""

    _cipher: ClassVar[Optional[Fernet]] = None

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        now = datetime.now(timezone.utc)
        log_payload: dict[str, Any] = {
            "timestamp": now.isoformat(),
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
            "recording_id": self._recording_id(request.url.path),
        }

        session_context = self._build_session_context(request, now)
        if session_context is not None:
            log_payload["session"] = {
                "id": session_context.identifier,
                "user_id": session_context.user_id,
                "role": session_context.role,
            }

        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover - re-raised after logging
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = self._elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(self._format_console_message(log_payload))
            raise

        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = self._elapsed_ms(start_time)
        logger.info(self._format_console_message(log_payload))
        await self._persist_log(request, log_payload, session_context)
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)

    @staticmethod
    def _recording_id(path: str) -> Optional[str]:
        match = _RECORDING_PATH.search(path)
        return match.group(1) if match else None

    async def _persist_log(
        self,
        request: Request,
        payload: dict[str, Any],
        session_context: SessionContext | None,
    ) -> None:
        """Store the entry in `request_logs` when enabled."""

        if not settings.persist_request_logs:
            return
        if request.url.path in _UNPERSISTED_PATHS or payload.get("status_code") == 307:
            return

        from app.database import session_scope
        from app.models.log import RequestLog

        log_entry = RequestLog(
            timestamp=_naive_utc(datetime.fromisoformat(payload["timestamp"])),
            method=payload["method"],
            url=payload["url"][:2048],
            status_code=payload.get("status_code", 0),
            client_ip=payload.get("client_ip"),
            duration_ms=int(payload.get("duration_ms") or 0),
            recording_id=payload.get("recording_id"),
        )
        if session_context is not None:
            log_entry.session_id = session_context.identifier
            log_entry.session_user_id = session_context.user_id
            log_entry.session_role = session_context.role
            log_entry.session_started_at = _naive_utc(session_context.started_at)
            log_entry.session_expires_at = _naive_utc(session_context.expires_at)
            log_entry.session_fingerprint = session_context.fingerprint

        try:
            async with session_scope() as session:
                session.add(log_entry)
                await session.commit()
        except Exception:  # pragma: no cover - database outage
            logger.exception("Failed to persist request log entry")

    def _build_session_context(
        self,
        request: Request,
        now: datetime,
    ) -> SessionContext | None:
        """Decode the bearer token (if any) into an encrypted session descriptor."""

        token = self._extract_bearer_token(request)
        if not token:
            return None

        try:
            token_payload = decode_access_token(token)
        except AuthenticationError:
            return None

        token_user = token_payload.user
        user_id = str(token_user.id) if token_user else token_payload.sub
        role = token_user.role.value if token_user else None
        started_at = (token_payload.iat or now).astimezone(timezone.utc)
        expires_at = token_payload.exp.astimezone(timezone.utc)

        fingerprint = hashlib.sha256(
            f"{user_id}:{int(started_at.timestamp())}".encode("utf-8")
        ).hexdigest()

        metadata: dict[str, Any] = {
            "session": fingerprint,
            "user_id": user_id,
            "role": role,
            "started_at": started_at.isoformat(),
            "expires_at": expires_at.isoformat(),
        }
        if request.client:
            metadata["client_ip"] = request.client.host
        user_agent = request.headers.get("user-agent")
        if user_agent:
            metadata["user_agent"] = user_agent[:256]

        return SessionContext(
            identifier=self._encrypt_session_metadata(metadata),
            user_id=user_id,
            role=role,
            started_at=started_at,
            expires_at=expires_at,
            fingerprint=fingerprint,
        )

    @classmethod
    def _encrypt_session_metadata(cls, metadata: dict[str, Any]) -> str:
        payload_bytes = json.dumps(metadata, default=str, separators=(",", ":")).encode("utf-8")
        return cls._get_cipher().encrypt(payload_bytes).decode("utf-8")

    @classmethod
    def _get_cipher(cls) -> Fernet:
        """Return a cached Fernet cipher derived from the JWT secret."""

        if cls._cipher is None:
            secret_bytes = settings.security.jwt_secret_key.get_secret_value().encode("utf-8")
            key = base64.urlsafe_b64encode(hashlib.sha256(secret_bytes).digest())
            cls._cipher = Fernet(key)
        return cls._cipher

    @staticmethod
    def _extract_bearer_token(request: Request) -> Optional[str]:
        auth_header = request.headers.get("authorization")
        if not auth_header:
            return None

        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return token

    @staticmethod
    def _format_console_message(payload: dict[str, Any]) -> str:
        """Return minimal request metadata wrapped with ANSI color codes."""

        status = payload.get("status_code") or 0
        if 200 <= status < 300:
            color = COLOR_GREEN
        elif 400 <= status < 500:
            color = COLOR_YELLOW
        elif status >= 500:
            color = COLOR_RED
        else:
            color = COLOR_CYAN

        session_info = payload.get("session") or {}
        fields = [
            ("timestamp", payload.get("timestamp")),
            ("method", payload.get("method")),
            ("url", payload.get("url")),
            ("status", payload.get("status_code")),
            ("duration_ms", payload.get("duration_ms")),
            ("user_id", session_info.get("user_id")),
            ("recording_id", payload.get("recording_id")),
        ]
        message = ", ".join(
            f"{name}={value if value is not None else '-'}" for name, value in fields
        )
        return f"{color}{message}{COLOR_RESET}"


def _naive_utc(value: Optional[datetime]) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


__all__ = ["SessionContext", "StructuredLoggingMiddleware"]
