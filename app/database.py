"""Database configuration and session management for the MVC layout."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings

# Import models so they are attached to Base.metadata before table creation
from app.models import Base  # noqa: F401 - ensures metadata is registered

logger = logging.getLogger(__name__)

_SCHEMA_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _normalise_schema_name(raw_schema: str | None) -> str | None:
    """Return a sanitised schema name or None when invalid/empty."""

    if raw_schema is None:
        return None

    schema = raw_schema.strip()
    if not schema:
        return None

    if not _SCHEMA_NAME_PATTERN.fullmatch(schema):
        logger.warning(
            "Ignoring invalid schema name '%s'; falling back to default search_path.",
            raw_schema,
        )
        return None

    return schema


def _quote_identifier(identifier: str) -> str:
    """Return a double-quoted SQL identifier, escaping inner quotes."""

    return identifier.replace('"', '""')


_SCHEMA_NAME = _normalise_schema_name(settings.database.db_schema)

if _SCHEMA_NAME:
    # Ensure SQLAlchemy emits DDL for the configured schema.
    Base.metadata.schema = _SCHEMA_NAME
    for table in Base.metadata.tables.values():
        if table.schema is None:
            table.schema = _SCHEMA_NAME


def _create_engine() -> AsyncEngine:
    """Create an async engine with environment-appropriate pooling."""

    engine_options: dict[str, Any] = {
        "echo": settings.debug,
        "future": True,
        "pool_pre_ping": True,
    }

    if settings.database.serverless or settings.debug:
        # Disable pooling when working with serverless databases (or in debug).
        engine_options["poolclass"] = NullPool

    return create_async_engine(settings.database.url, **engine_options)


engine: AsyncEngine = _create_engine()

SessionFactory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def _ensure_search_path(target: Any) -> None:
    """Set the search_path on the given session/connection when a schema is configured."""

    if not _SCHEMA_NAME:
        return

    quoted_schema = _quote_identifier(_SCHEMA_NAME)
    await target.execute(text(f'SET search_path TO "{quoted_schema}", public'))


_BACKFILL_STATEMENTS = (
    # Compressed copy used by the AI while the original stays for playback.
    "ALTER TABLE IF EXISTS recordings ADD COLUMN IF NOT EXISTS analysis_file_path TEXT",
    "ALTER TABLE IF EXISTS recordings ADD COLUMN IF NOT EXISTS analysis_file_size BIGINT",
    "ALTER TABLE IF EXISTS recordings "
    "ADD COLUMN IF NOT EXISTS is_archived BOOLEAN NOT NULL DEFAULT false",
    "ALTER TABLE IF EXISTS audio_analyses "
    "ADD COLUMN IF NOT EXISTS processing_stage VARCHAR(20) NOT NULL DEFAULT 'pending'",
    "ALTER TABLE IF EXISTS audio_analyses "
    "ADD COLUMN IF NOT EXISTS transcription_completed_at TIMESTAMP",
    "ALTER TABLE IF EXISTS audio_analyses "
    "ADD COLUMN IF NOT EXISTS analysis_completed_at TIMESTAMP",
    "ALTER TABLE IF EXISTS audio_analyses ADD COLUMN IF NOT EXISTS w4_report JSONB",
    "ALTER TABLE IF EXISTS request_logs ADD COLUMN IF NOT EXISTS recording_id VARCHAR(36)",
    "ALTER TABLE IF EXISTS request_logs ADD COLUMN IF NOT EXISTS session_role VARCHAR(20)",
    # Rows created before stages existed.
    "UPDATE audio_analyses SET processing_stage = processing_status "
    "WHERE processing_stage = 'pending' AND processing_status IN ('done', 'error')",
)


async def _apply_backfill_migrations(conn: Any) -> None:
    """Apply idempotent schema adjustments for legacy databases."""

    for statement in _BACKFILL_STATEMENTS:
        await conn.execute(text(statement))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Async context manager that yields a configured SQLAlchemy session."""

    async with SessionFactory() as session:
        await _ensure_search_path(session)
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency-compatible generator yielding a configured session."""

    async with session_scope() as session:
        yield session


async def init_models() -> None:
    """Create database tables if they do not exist."""

    async with engine.begin() as conn:
        if _SCHEMA_NAME:
            quoted_schema = _quote_identifier(_SCHEMA_NAME)
            await conn.execute(
                text(f'CREATE SCHEMA IF NOT EXISTS "{quoted_schema}"')
            )
        await _ensure_search_path(conn)
        await conn.run_sync(Base.metadata.create_all)
        await _apply_backfill_migrations(conn)

    if _SCHEMA_NAME:
        logger.info("Ensured database tables in schema '%s'.", _SCHEMA_NAME)
    else:
        logger.info("Ensured database tables in default schema.")


async def dispose_engine() -> None:
    """Dispose of the engine and release pooled connections."""

    await engine.dispose()
