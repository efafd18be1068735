"""
Database Connection Module

Async SQLAlchemy engine, session factory and declarative Base.

Usage in FastAPI endpoints:
    @router.get("/")
    async def my_endpoint(db: AsyncSession = Depends(get_db)):
        ...
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# Engine
# ============================================================
engine = create_async_engine(
    str(settings.DATABASE_URL),
    echo=settings.SQLALCHEMY_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# expire_on_commit=False: services keep using loaded rows after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# ============================================================
# Session Dependency
# ============================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for one request.

    The session is rolled back if the request handler raises, and always closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ============================================================
# Health Check
# ============================================================
async def check_db_connection() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
