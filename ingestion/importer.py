"""
Import orchestrator: load a list of inputs into one warehouse table.

Inputs are processed strictly in order. For input ``i`` the orchestrator
obtains the bytes, stages them as ``data-{i}{ext}``, runs one statement and
drops the staged buffer before moving on:

    one input          CREATE TABLE t AS SELECT * FROM 'data-0.csv'
    several, i == 0    CREATE TABLE t AS SELECT *, 'a.csv' AS filename FROM 'data-0.csv'
    several, i > 0     INSERT INTO t SELECT *, 'b.csv' AS filename FROM 'data-1.csv'

The first failure propagates unchanged. Inputs committed before it stay in
the table and nothing is cleaned up.
"""

from typing import Any, Callable, Optional, Sequence

import httpx

from ingestion.base import DatabaseHandle, QueryEngine
from ingestion.extensions import resolve_extension
from ingestion.fetcher import fetch_with_progress
from ingestion.inputs import LocalFile, RemoteSource, validate_inputs
from ingestion.progress import ProgressLog
import logging

logger = logging.getLogger(__name__)


def build_load_statement(
    engine: QueryEngine,
    table: str,
    temp_name: str,
    source_name: str,
    index: int,
    input_count: int
) -> str:
    """SQL that creates or appends to ``table`` from one staged file."""
    source = engine.literal(temp_name)

    # A filename column is added only when several inputs share the table
    if input_count == 1:
        return f"CREATE TABLE {table} AS SELECT * FROM {source}"

    filename = engine.literal(source_name)
    if index == 0:
        return f"CREATE TABLE {table} AS SELECT *, {filename} AS filename FROM {source}"
    return f"INSERT INTO {table} SELECT *, {filename} AS filename FROM {source}"


async def import_data_table(
    inputs: Sequence[Any],
    database: DatabaseHandle,
    engine: QueryEngine,
    table: str,
    progress: Optional[ProgressLog] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    on_loaded: Optional[Callable[[int, str], None]] = None
) -> None:
    """
    Load ``inputs`` into ``table``.

    Args:
        inputs: LocalFile / RemoteSource items, in load order
        database: Holds staged byte buffers
        engine: Executes the load statements
        table: Target table name (an identifier, not quoted)
        progress: Receives user-facing progress messages
        client: HTTP client used for remote sources
        on_loaded: Called with ``(index, source_name)`` after each input is
            committed and its staged buffer dropped

    Raises:
        InvalidInputTypeError: An input has an unsupported shape (checked
            before anything is loaded)
        FetchError: A remote source could not be downloaded
        Exception: Warehouse errors, unmodified
    """
    items = validate_inputs(inputs)

    for index, item in enumerate(items):
        if isinstance(item, LocalFile):
            if progress is not None:
                progress.info("Loading data from file...")
            source_name = item.name
            data = await item.read_bytes()
        elif isinstance(item, RemoteSource):
            if progress is not None:
                progress.info("Loading data from URL...")
            source_name = item.url
            data = await fetch_with_progress(item.url, client=client, progress=progress)

        temp_name = f"data-{index}" + (resolve_extension(source_name) or "")
        await database.register_file_buffer(temp_name, data)

        statement = build_load_statement(
            engine, table, temp_name, source_name, index, len(items)
        )
        await engine.query(statement)

        await database.drop_file(temp_name)

        logger.info(
            f"Loaded input {index + 1}/{len(items)} into {table} from {source_name[:200]}"
        )
        if on_loaded is not None:
            on_loaded(index, source_name)
