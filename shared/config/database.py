import asyncio
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from shared.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def bounded(awaitable):
    """Await a storage call, failing with asyncio.TimeoutError past STORAGE_TIMEOUT_SECONDS."""
    return await asyncio.wait_for(awaitable, timeout=settings.STORAGE_TIMEOUT_SECONDS)


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def utcnow():
    return datetime.now(timezone.utc)
