"""
Health check endpoint with warehouse and ledger status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from api.dependencies import get_db, get_jobs, get_warehouse
from api.jobs import ImportJobs
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    warehouse: DuckDBQueryEngine = Depends(get_warehouse),
    jobs: ImportJobs = Depends(get_jobs)
):
    """
    Health check endpoint.

    Returns:
    - Warehouse (DuckDB) connectivity
    - Ledger database connectivity
    - Number of imports in flight
    """
    warehouse_connected = False
    ledger_connected = False

    try:
        await warehouse.fetch_rows("SELECT 1 AS ok")
        warehouse_connected = True
    except Exception as e:
        logger.error(f"Warehouse check failed: {str(e)}")

    try:
        await db.execute(text("SELECT 1"))
        ledger_connected = True
    except Exception as e:
        logger.error(f"Ledger connection failed: {str(e)}")

    return HealthCheckResponse.build(
        warehouse_connected=warehouse_connected,
        ledger_connected=ledger_connected,
        active_imports=jobs.active_count
    )
