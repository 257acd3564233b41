# src/gymledger/db/session.py

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from gymledger.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,      # test the connection on checkout, drops stale ones
    pool_recycle=3600,
)

SessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    class_=AsyncSession
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a transactional scope around a request.
    Commits when the request handler returns, rolls back on any exception,
    so every handler's writes land (or vanish) together.
    """
    async with SessionLocal() as session:
        async with session.begin():
            yield session
