"""
Import submission and run status endpoints
"""

import uuid
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, get_jobs, get_warehouse
from api.jobs import ImportJobs
from ingestion.inputs import RemoteSource
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine
from ingestion.progress import ProgressLog
from ingestion.runner import ImportRunner
from models.base import ImportStatus
from models.import_run import ImportRun
from schemas.api import (
    ImportAcceptedResponse,
    ImportListResponse,
    ImportRequest,
    ImportRunResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Imports"])


async def run_import_job(state, run_id: str, table: str, inputs, progress: ProgressLog):
    """Background task: run one import and release its table afterwards"""
    try:
        async with state.session_maker() as session:
            runner = ImportRunner(
                session,
                state.staging,
                state.warehouse,
                client=state.http_client,
                locks=state.locks
            )
            await runner.run(inputs, table, progress, run_id=run_id)
    except Exception as e:
        # The failure is already on the run record and in the progress log
        logger.warning(f"Background import {run_id} into {table} ended with {type(e).__name__}")
    finally:
        state.jobs.finish(run_id, table)


@router.post("/imports", response_model=ImportAcceptedResponse, status_code=202)
async def submit_import(
    payload: ImportRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    warehouse: DuckDBQueryEngine = Depends(get_warehouse),
    jobs: ImportJobs = Depends(get_jobs)
):
    """
    Submit an import of one or more URLs into a new table.

    The import runs in the background; poll ``status_url`` for progress.
    """
    request_id = getattr(request.state, "request_id", "-")

    if await warehouse.is_reserved_word(payload.table):
        raise HTTPException(
            status_code=422,
            detail=f"'{payload.table}' is a reserved word and cannot be used as a table name"
        )

    if await warehouse.table_exists(payload.table):
        raise HTTPException(status_code=409, detail=f"Table '{payload.table}' already exists")

    run_id = str(uuid.uuid4())
    progress = jobs.start(run_id, payload.table)
    if progress is None:
        raise HTTPException(
            status_code=409,
            detail=f"An import into '{payload.table}' is already running"
        )

    logger.info(
        f"[{request_id}] POST /imports - run_id={run_id}, table={payload.table}, "
        f"inputs={len(payload.urls)}"
    )

    inputs = [RemoteSource(url=url) for url in payload.urls]
    background_tasks.add_task(
        run_import_job, request.app.state, run_id, payload.table, inputs, progress
    )

    return ImportAcceptedResponse(
        run_id=run_id,
        table=payload.table,
        status_url=f"/imports/{run_id}"
    )


@router.get("/imports", response_model=ImportListResponse)
async def list_imports(
    limit: int = Query(20, ge=1, le=100, description="Number of recent runs to return"),
    table: str = Query(None, description="Only runs into this table"),
    db: AsyncSession = Depends(get_db)
):
    """Recent import runs, newest first"""
    query = select(ImportRun)
    count_query = select(func.count()).select_from(ImportRun)
    if table:
        query = query.where(ImportRun.table_name == table)
        count_query = count_query.where(ImportRun.table_name == table)

    result = await db.execute(query.order_by(ImportRun.started_at.desc(), ImportRun.id.desc()).limit(limit))
    runs = result.scalars().all()
    total = (await db.execute(count_query)).scalar()

    return ImportListResponse(
        runs=[ImportRunResponse.from_run(run) for run in runs],
        total=total
    )


@router.get("/imports/{run_id}", response_model=ImportRunResponse)
async def get_import(
    run_id: str,
    db: AsyncSession = Depends(get_db),
    jobs: ImportJobs = Depends(get_jobs)
):
    """Import run status with its progress log"""
    tracked = jobs.get(run_id)
    messages = tracked[1].messages if tracked else ()

    result = await db.execute(select(ImportRun).where(ImportRun.run_id == run_id))
    run = result.scalar_one_or_none()

    if run is not None:
        return ImportRunResponse.from_run(run, messages)

    if tracked is not None:
        # Submitted, background task not started yet
        return ImportRunResponse(
            run_id=run_id,
            table_name=tracked[0],
            status=ImportStatus.PENDING,
            messages=list(messages)
        )

    raise HTTPException(status_code=404, detail=f"Import run '{run_id}' not found")
