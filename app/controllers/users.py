"""Profile controller: registration and the caller's own profile."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.user import User as UserModel
from app.models.user import UserRole
from app.utils import hash_password, verify_password
from app.views import (
    SuccessResponse,
    UserChangePasswordRequest,
    UserRegistrationRequest,
    UserRegistrationResponse,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/", response_model=UserRegistrationResponse, status_code=status.HTTP_201_CREATED
)
async def register_user(
    payload: UserRegistrationRequest,
    session: SessionDep,
) -> UserRegistrationResponse:
    result = await session.execute(
        select(UserModel).where(UserModel.email == payload.email)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email address already registered",
        )

    db_user = UserModel(
        email=payload.email,
        full_name=payload.fullName,
        password_hash=hash_password(payload.password),
        role=UserRole.USER,
    )

    session.add(db_user)
    await session.commit()
    await session.refresh(db_user)

    return UserRegistrationResponse(
        id=db_user.id,
        email=db_user.email,
        fullName=db_user.full_name,
        role=db_user.role,
        created_at=db_user.created_at,
        message="User registered successfully",
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: CurrentUserDep,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.post("/me/password", response_model=SuccessResponse)
async def change_password(
    payload: UserChangePasswordRequest,
    session: SessionDep,
    current_user: CurrentUserDep,
) -> SuccessResponse:
    if not verify_password(payload.currentPassword, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    current_user.password_hash = hash_password(payload.newPassword)
    session.add(current_user)
    await session.commit()

    return SuccessResponse(message="Password updated successfully")
