"""Admin-editable prompt storage."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin_prompt import AdminPrompt

logger = logging.getLogger(__name__)


async def get_prompt(session: AsyncSession, name: str) -> AdminPrompt | None:
    result = await session.execute(select(AdminPrompt).where(AdminPrompt.name == name))
    return result.scalar_one_or_none()


async def list_prompts(session: AsyncSession) -> list[AdminPrompt]:
    result = await session.execute(select(AdminPrompt).order_by(AdminPrompt.name.asc()))
    return list(result.scalars().all())


async def upsert_prompt(
    session: AsyncSession,
    *,
    name: str,
    prompt: str,
    description: str | None = None,
    updated_by: int | None = None,
) -> AdminPrompt:
    """Create or replace the prompt called `name`; the caller commits."""

    record = await get_prompt(session, name)
    if record is None:
        record = AdminPrompt(name=name, prompt=prompt, description=description, is_active=True)
        session.add(record)
    else:
        record.prompt = prompt
        if description is not None:
            record.description = description
        record.is_active = True
    record.updated_by = updated_by
    await session.flush()
    logger.info("Admin prompt saved name=%s by user=%s", name, updated_by)
    return record


async def load_active_prompt(session: AsyncSession, name: str) -> str | None:
    """Prompt text when an active override exists, otherwise None."""

    record = await get_prompt(session, name)
    if record is None or not record.is_active or not (record.prompt or "").strip():
        return None
    return record.prompt


__all__ = ["get_prompt", "list_prompts", "load_active_prompt", "upsert_prompt"]
