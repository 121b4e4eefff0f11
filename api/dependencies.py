"""
FastAPI dependencies backed by application state
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.jobs import ImportJobs
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Ledger database session"""
    async with request.app.state.session_maker() as session:
        yield session


def get_warehouse(request: Request) -> DuckDBQueryEngine:
    return request.app.state.warehouse


def get_jobs(request: Request) -> ImportJobs:
    return request.app.state.jobs
