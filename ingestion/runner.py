# ============================================================================
# File: ingestion/runner.py
# Description: Import runner with run tracking and per-table serialization
# ============================================================================
"""
Import Runner - wraps one orchestrator call with bookkeeping.

This module provides:
- An ImportRun ledger row per import (status, inputs committed, error kind)
- Serialization of imports that target the same table
- Reporting of the terminal failure to the user's progress log

The orchestrator itself never catches errors; the runner records them and
re-raises the original exception.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import LoggableError, error_kind
from ingestion.base import DatabaseHandle, QueryEngine
from ingestion.importer import import_data_table
from ingestion.inputs import source_name, validate_inputs
from ingestion.progress import ProgressLog
from models.base import ImportStatus
from models.import_run import ImportRun
import logging

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TableLocks:
    """One asyncio lock per target table."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, table: str) -> asyncio.Lock:
        key = table.lower()
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def is_locked(self, table: str) -> bool:
        lock = self._locks.get(table.lower())
        return lock is not None and lock.locked()


class ImportRunner:
    """
    Import orchestrator with run tracking

    Responsibilities:
    - Validate inputs before anything is recorded or loaded
    - Record an ImportRun for every import
    - Serialize imports into the same table
    - Mark runs SUCCESS, PARTIAL (failed after committing inputs) or FAILED
    """

    def __init__(
        self,
        db_session: AsyncSession,
        database: DatabaseHandle,
        engine: QueryEngine,
        *,
        client: Optional[httpx.AsyncClient] = None,
        locks: Optional[TableLocks] = None
    ):
        self.db = db_session
        self.database = database
        self.engine = engine
        self.client = client
        self.locks = locks or TableLocks()

    async def run(
        self,
        inputs: Sequence[Any],
        table: str,
        progress: Optional[ProgressLog] = None,
        run_id: Optional[str] = None
    ) -> ImportRun:
        """
        Import ``inputs`` into ``table`` and return the completed run record.

        Raises:
            The first error of the import, unmodified, after it has been
            recorded on the run and shown in ``progress``.
        """
        try:
            items = validate_inputs(inputs)
        except LoggableError as e:
            logger.error(f"Rejected import into {table}: {e.describe()}")
            if progress is not None:
                progress.exception(e)
            raise

        run = ImportRun(
            run_id=run_id or str(uuid.uuid4()),
            table_name=table,
            status=ImportStatus.RUNNING,
            started_at=_utcnow(),
            input_count=len(items),
            inputs_loaded=0,
            sources=[source_name(item) for item in items]
        )
        self.db.add(run)
        await self.db.commit()

        logger.info(f"Starting import {run.run_id} into {table} ({len(items)} inputs)")

        def on_loaded(index: int, name: str) -> None:
            run.inputs_loaded = index + 1

        async with self.locks.get(table):
            try:
                await import_data_table(
                    items,
                    self.database,
                    self.engine,
                    table,
                    progress,
                    client=self.client,
                    on_loaded=on_loaded
                )

            except Exception as e:
                if isinstance(e, LoggableError):
                    logger.error(f"Import {run.run_id} failed: {e.describe()}")
                else:
                    logger.exception(f"Import {run.run_id} failed with an unclassified error")

                if progress is not None:
                    progress.exception(e)

                status = ImportStatus.PARTIAL if run.inputs_loaded > 0 else ImportStatus.FAILED
                await self._complete(run, status, error=e)
                raise

        await self._complete(run, ImportStatus.SUCCESS)
        logger.info(
            f"Import {run.run_id} completed: {run.inputs_loaded}/{run.input_count} inputs "
            f"in {run.duration_seconds:.2f}s"
        )
        return run

    async def _complete(
        self,
        run: ImportRun,
        status: ImportStatus,
        error: Optional[BaseException] = None
    ) -> None:
        """Complete the run record"""
        run.status = status
        run.completed_at = _utcnow()
        run.duration_seconds = (run.completed_at - run.started_at).total_seconds()
        if error is not None:
            run.error_kind = error_kind(error)
            run.error_message = error.message if isinstance(error, LoggableError) else str(error)
        await self.db.commit()
