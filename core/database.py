"""
Ledger database session management with SQLAlchemy async
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings
from models.base import Base
import logging

logger = logging.getLogger(__name__)


def create_ledger_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine backing the import run ledger"""
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=False,
        future=True
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to the ledger engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_ledger(engine: AsyncEngine) -> None:
    """Create ledger tables. Safe to call repeatedly."""
    # Registers the ledger models on Base.metadata
    import models.import_run  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Import ledger tables ready")
