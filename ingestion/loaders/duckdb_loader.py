"""
DuckDB warehouse: staged file buffers plus a query engine that reads them.

Registered buffers are written into a staging directory. The DuckDB
connection's ``file_search_path`` points at that directory, so a statement
such as ``SELECT * FROM 'data-0.csv'`` resolves the staged file and DuckDB
picks the reader (CSV, JSON, NDJSON, Parquet) from its extension.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Union

import duckdb

from ingestion.base import DatabaseHandle, QueryEngine
import logging

logger = logging.getLogger(__name__)


class StagingArea(DatabaseHandle):
    """
    Directory of temporary file buffers the warehouse can query by name.

    Ensures:
    - Names are plain file names (no path components)
    - Dropping a name that is not staged is a no-op
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        if not name or Path(name).name != name:
            raise ValueError(f"Invalid staged file name: {name!r}")
        return self.directory / name

    @property
    def staged_files(self) -> List[str]:
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())

    async def register_file_buffer(self, name: str, data: bytes) -> None:
        path = self._path(name)
        await asyncio.to_thread(path.write_bytes, data)
        logger.debug(f"Staged {name} ({len(data)} bytes)")

    async def drop_file(self, name: str) -> None:
        path = self._path(name)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug(f"Dropped staged file {name}")


class DuckDBQueryEngine(QueryEngine):
    """
    Runs import statements against a DuckDB connection.

    Statements execute in a worker thread so the event loop keeps serving
    other work. One statement runs on the connection at a time.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self._conn = conn
        self._lock = asyncio.Lock()

    @classmethod
    def connect(cls, database: str, staging: StagingArea) -> "DuckDBQueryEngine":
        """
        Open ``database`` (a path or ``:memory:``) and point its file search
        path at ``staging``.
        """
        conn = duckdb.connect(database)
        engine = cls(conn)
        conn.execute(f"SET file_search_path = {engine.literal(str(staging.directory))}")
        logger.info(f"Opened DuckDB warehouse {database} (staging: {staging.directory})")
        return engine

    def literal(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    async def query(self, sql: str) -> None:
        logger.debug(f"Executing: {sql}")
        async with self._lock:
            await asyncio.to_thread(self._conn.execute, sql)

    def _fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        cursor = self._conn.execute(sql)
        columns = [column[0] for column in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    async def fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        async with self._lock:
            return await asyncio.to_thread(self._fetch_rows, sql)

    async def table_exists(self, table: str) -> bool:
        # Identifiers resolve case-insensitively but keep the case they were created with
        rows = await self.fetch_rows(
            "SELECT COUNT(*) AS n FROM information_schema.tables "
            f"WHERE lower(table_name) = lower({self.literal(table)})"
        )
        return rows[0]["n"] > 0

    async def is_reserved_word(self, name: str) -> bool:
        """True if ``name`` cannot be used as an unquoted table name"""
        rows = await self.fetch_rows(
            "SELECT COUNT(*) AS n FROM duckdb_keywords() "
            f"WHERE keyword_category = 'reserved' AND keyword_name = lower({self.literal(name)})"
        )
        return rows[0]["n"] > 0

    async def describe_table(self, table: str) -> List[Dict[str, str]]:
        """Column names and DuckDB types of ``table``, in table order"""
        rows = await self.fetch_rows(f"DESCRIBE {table}")
        return [{"name": row["column_name"], "type": row["column_type"]} for row in rows]

    def close(self) -> None:
        self._conn.close()
