"""Async SQLAlchemy session management for the short link store."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from .config import DATABASE_URL
from .models import Base

engine_options = {}

# SQLite connections are bound to the event loop that opened them
if DATABASE_URL.startswith("sqlite"):
    engine_options["poolclass"] = NullPool

engine = create_async_engine(DATABASE_URL, **engine_options)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db():
    """Create the urls table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"[DB] Connected to {engine.url.render_as_string(hide_password=True)}")


async def dispose_db():
    await engine.dispose()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for getting a database session."""
    async with AsyncSessionLocal() as session:
        yield session
