"""Async database engine, session factory and the per-request session dependency."""
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("postgresql+asyncpg"):
        kwargs.update(pool_size=10, max_overflow=20, connect_args={"timeout": 10})
    return create_async_engine(url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def display_url(url: str) -> str:
    """Mask credentials (show only host/db part)."""
    return "...@" + url.split("@")[-1].split("?")[0] if "@" in url else url


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
