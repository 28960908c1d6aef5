"""Authentication controller providing login endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.config.settings import settings
from app.controllers.dependencies import SessionDep
from app.models.user import User as UserModel
from app.telemetry import increment_login
from app.utils import create_access_token, verify_password
from app.views import LoginRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: SessionDep,
) -> TokenResponse:
    """Exchange email and password for a bearer token carrying the profile role."""

    result = await session.execute(
        select(UserModel).where(UserModel.email == payload.email)
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.password_hash):
        increment_login("rejected")
        logger.info("Rejected login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    increment_login()
    return TokenResponse(
        access_token=create_access_token(subject=str(user.id), user=user),
        expires_in=settings.security.access_token_expires_minutes * 60,
        role=user.role.value,
        name=user.full_name,
    )
