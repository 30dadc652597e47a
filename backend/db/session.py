"""Database engine and session configuration for ORM models."""

import asyncio
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import DATABASE_DISABLE_SSL, DATABASE_MAX_CONNECTIONS, DATABASE_URL

logger = logging.getLogger(__name__)


def _make_async_url(url: str) -> Optional[str]:
    """Convert a DB URL to the async driver form.

    Returns None if the URL scheme is not supported for async operations.
    """
    # Handle PostGIS (postgis://) and PostgreSQL (postgresql://) schemes
    if url.startswith("postgis://"):
        return url.replace("postgis://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql+psycopg://"):
        return url
    # Triggers, schemas and MVT tiles are PostgreSQL-only
    return None


def connect_args() -> dict:
    """Driver arguments shared by the app engine and the migration engine."""
    return {"sslmode": "disable"} if DATABASE_DISABLE_SSL else {}


def make_engine(url: str) -> AsyncEngine:
    """Create an AsyncEngine for ``url`` using the configured pool and SSL settings."""
    return create_async_engine(
        url,
        echo=False,
        pool_size=DATABASE_MAX_CONNECTIONS,
        pool_pre_ping=True,
        connect_args=connect_args(),
    )


# AsyncEngine using psycopg v3 driver; session factory bound to it if URL is provided
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None

if DATABASE_URL:
    ASYNC_DATABASE_URL = _make_async_url(DATABASE_URL)
    if ASYNC_DATABASE_URL:
        engine = make_engine(ASYNC_DATABASE_URL)
        AsyncSessionLocal = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    else:
        logger.warning("Unsupported database URL scheme; database features are disabled")


async def wait_for_db(max_attempts: int = 15, delay: float = 1.0) -> None:
    """Block until the database accepts connections, retrying with backoff."""
    if engine is None:
        return
    for attempt in range(1, max_attempts + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return
        except OperationalError as exc:
            if attempt >= max_attempts:
                raise
            logger.warning(
                "Database not ready (attempt %s/%s): %s",
                attempt,
                max_attempts,
                exc,
            )
            await asyncio.sleep(delay)
            delay = min(delay * 1.5, 5.0)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Async generator yielding a database session for dependency injection."""
    if AsyncSessionLocal is None:
        raise RuntimeError(
            """
            Database session factory is not configured;
            set DATABASE_URL (or DATABASE_USER, DATABASE_PASSWORD, DATABASE_HOST
            and DATABASE_NAME) and ensure PostgreSQL is running.
            """
        )
    async with AsyncSessionLocal() as session:
        yield session
