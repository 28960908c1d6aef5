"""Admin-only endpoints: token billing analytics and prompt management."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from app.controllers.dependencies import AdminUserDep, SessionDep
from app.pipelines.analysis.w4_prompt import DEFAULT_PROMPT_NAME, W4_EDITABLE_CONTENT, W4_OUTPUT_FORMAT
from app.services.admin_prompts import get_prompt, list_prompts, upsert_prompt
from app.services.token_usage import (
    aggregate_usage,
    get_platform_token_stats,
    get_token_logs,
    get_usage_rows,
    get_user_token_stats,
    model_distribution,
    resolve_time_range,
)
from app.views import (
    AdminPromptLookupResponse,
    AdminPromptResponse,
    AdminPromptUpsertRequest,
    DefaultPromptResponse,
    TokenStatsResponse,
)

router = APIRouter(prefix="/admin", tags=["admin"])

logger = logging.getLogger(__name__)

RECENT_LOGS_LIMIT = 50


@router.get("/token-stats", response_model=TokenStatsResponse)
async def token_stats(
    _admin: AdminUserDep,
    session: SessionDep,
    range: Optional[str] = "month",
) -> TokenStatsResponse:
    """Platform totals, per-user usage, recent requests and the usage chart."""

    time_range = resolve_time_range(range)
    platform = await get_platform_token_stats(session)
    users = await get_user_token_stats(session)
    logs = await get_token_logs(session, limit=RECENT_LOGS_LIMIT)
    rows = await get_usage_rows(session, time_range)

    return TokenStatsResponse(
        platform=platform,
        users=users,
        recentLogs=logs,
        dailyUsage=aggregate_usage(rows, time_range),
        modelDistribution=model_distribution(rows),
        range=time_range.key,
    )


@router.get("/prompts", response_model=AdminPromptLookupResponse)
async def get_admin_prompt(
    _admin: AdminUserDep,
    session: SessionDep,
    name: str = DEFAULT_PROMPT_NAME,
) -> AdminPromptLookupResponse:
    record = await get_prompt(session, name)
    prompt = AdminPromptResponse.model_validate(record) if record else None
    return AdminPromptLookupResponse(prompt=prompt)


@router.put("/prompts", response_model=AdminPromptLookupResponse)
async def save_admin_prompt(
    payload: AdminPromptUpsertRequest,
    admin: AdminUserDep,
    session: SessionDep,
) -> AdminPromptLookupResponse:
    name = (payload.name or "").strip()
    if not name or not (payload.prompt or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and prompt are required",
        )

    record = await upsert_prompt(
        session,
        name=name,
        prompt=payload.prompt,
        description=payload.description,
        updated_by=admin.id,
    )
    await session.commit()
    await session.refresh(record)
    return AdminPromptLookupResponse(prompt=AdminPromptResponse.model_validate(record))


@router.get("/prompts/list", response_model=list[AdminPromptResponse])
async def list_admin_prompts(
    _admin: AdminUserDep,
    session: SessionDep,
) -> list[AdminPromptResponse]:
    return [AdminPromptResponse.model_validate(item) for item in await list_prompts(session)]


@router.get("/prompts/default", response_model=DefaultPromptResponse)
async def default_admin_prompt(_admin: AdminUserDep) -> DefaultPromptResponse:
    """Built-in rubric plus the output format that is always appended."""

    return DefaultPromptResponse(prompt=W4_EDITABLE_CONTENT, lockedOutput=W4_OUTPUT_FORMAT)
