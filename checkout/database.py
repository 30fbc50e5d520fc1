"""Engine and session factory for the audit trail database."""

from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from checkout.config import settings
from checkout.models.event import Base


def build_engine(url: str) -> AsyncEngine:
    """
    Async engine for ``url``.

    An in-memory SQLite database exists per connection, so it is pinned to
    a single shared connection.
    """
    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(url, poolclass=StaticPool)
    return create_async_engine(url, pool_pre_ping=True)


def session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine(settings.database_url)
async_session = session_factory(engine)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the payment_events table if it does not exist yet."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session
