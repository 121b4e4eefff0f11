"""
Warehouse table inspection endpoint
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from api.dependencies import get_warehouse
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine
from core.config import settings
from schemas.api import TABLE_NAME_PATTERN, ColumnInfo, TableResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Tables"])


@router.get("/tables/{table}", response_model=TableResponse)
async def get_table(
    table: str = Path(..., pattern=TABLE_NAME_PATTERN),
    limit: int = Query(settings.PREVIEW_ROWS, ge=0, le=1000, description="Preview rows"),
    warehouse: DuckDBQueryEngine = Depends(get_warehouse)
):
    """Columns, row count and a preview of an imported table"""
    if not await warehouse.table_exists(table):
        raise HTTPException(status_code=404, detail=f"Table '{table}' not found")

    columns = await warehouse.describe_table(table)
    count_rows = await warehouse.fetch_rows(f"SELECT COUNT(*) AS n FROM {table}")
    preview = await warehouse.fetch_rows(f"SELECT * FROM {table} LIMIT {limit}") if limit else []

    return TableResponse(
        table=table,
        columns=[ColumnInfo(**column) for column in columns],
        row_count=count_rows[0]["n"],
        preview=preview
    )
