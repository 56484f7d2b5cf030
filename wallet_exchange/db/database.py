from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from wallet_exchange.config import settings


class Base(DeclarativeBase):
    pass


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine for the identity store."""
    url = database_url or settings.database_url
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    kwargs: Dict[str, Any] = {"echo": False}
    if url.startswith("sqlite"):
        # Concurrent writers wait on the SQLite lock instead of failing fast
        kwargs["connect_args"] = {"timeout": 15}
    else:
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    from . import models  # noqa: F401 - register tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
