# src/saasbasic/db/session.py
from __future__ import annotations

import os

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from saasbasic.core.config import settings


def _use_nullpool() -> bool:
    # NullPool in tests (or when explicitly requested) so connections are not
    # shared across event loops.
    return os.getenv("SQLALCHEMY_NULLPOOL", "0") == "1" or bool(settings.TESTING)


def build_engine(url: str | URL | None = None, **overrides) -> AsyncEngine:
    """Create an async engine with the app's defaults."""
    kwargs: dict = {
        "echo": bool(settings.DB_ECHO),
        "pool_pre_ping": True,
    }
    if _use_nullpool():
        kwargs["poolclass"] = NullPool
    kwargs.update(overrides)
    return create_async_engine(url or settings.DATABASE_URL, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
