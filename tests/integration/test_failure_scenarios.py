"""
Tests for failure scenarios and error handling
"""

import duckdb
import httpx
import pytest
from sqlalchemy import select

from core.exceptions import NetworkFailure, StreamReadFailure
from ingestion.importer import import_data_table
from ingestion.inputs import LocalFile, RemoteSource
from ingestion.runner import ImportRunner
from models.base import ImportStatus
from models.import_run import ImportRun


class BrokenStream(httpx.AsyncByteStream):
    """Body that fails after the first chunk"""

    async def __aiter__(self):
        yield b"id,city,fare\n"
        raise httpx.RemoteProtocolError("peer closed connection without sending complete message body")


@pytest.mark.asyncio
async def test_fetch_failure_mid_sequence_keeps_committed_rows(
    staging, warehouse, january_csv, february_csv, progress
):
    """
    Input 2 of 3 fails during fetch:
    1. Input 1's rows remain in the table
    2. Input 3 is never staged
    3. The classified error reaches the caller
    """
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    inputs = [
        LocalFile(name="jan.csv", data=january_csv),
        RemoteSource(url="https://unreachable.example.com/feb.csv"),
        LocalFile(name="mar.csv", data=february_csv),
    ]

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkFailure):
            await import_data_table(inputs, staging, warehouse, "trips", progress, client=client)

    rows = await warehouse.fetch_rows("SELECT DISTINCT filename FROM trips")
    assert rows == [{"filename": "jan.csv"}]
    assert staging.staged_files == []


@pytest.mark.asyncio
async def test_stream_failure_recorded_as_partial(db_session, staging, warehouse, january_csv, progress):
    """
    Body read fails part way:
    1. Run is PARTIAL with the stream failure kind
    2. Progress log ends with the user-facing error
    """
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, stream=BrokenStream()))
    ) as client:
        runner = ImportRunner(db_session, staging, warehouse, client=client)
        with pytest.raises(StreamReadFailure):
            await runner.run(
                [LocalFile(name="jan.csv", data=january_csv), RemoteSource(url="https://e.com/feb.csv")],
                "trips",
                progress,
                run_id="broken-stream",
            )

    run = (await db_session.execute(
        select(ImportRun).where(ImportRun.run_id == "broken-stream")
    )).scalar_one()
    assert run.status == ImportStatus.PARTIAL
    assert run.error_kind == "stream_read_failure"

    last = progress.messages[-1]
    assert last.error is True
    assert last.text == "Failed to fetch data from URL: Error while reading data."


@pytest.mark.asyncio
async def test_existing_table_fails_unwrapped(db_session, staging, warehouse, january_csv):
    """Warehouse errors are recorded as unclassified and re-raised as-is"""
    await warehouse.query("CREATE TABLE trips (id INTEGER)")
    runner = ImportRunner(db_session, staging, warehouse)

    with pytest.raises(duckdb.CatalogException):
        await runner.run([LocalFile(name="jan.csv", data=january_csv)], "trips", run_id="exists")

    run = (await db_session.execute(
        select(ImportRun).where(ImportRun.run_id == "exists")
    )).scalar_one()
    assert run.status == ImportStatus.FAILED
    assert run.error_kind == "unclassified"

    # The failing input's buffer is not released
    assert staging.staged_files == ["data-0.csv"]


@pytest.mark.asyncio
async def test_mismatched_columns_leave_first_input(staging, warehouse, january_csv):
    """Appending a file with a different shape fails after the first input committed"""
    with pytest.raises(duckdb.Error):
        await import_data_table(
            [
                LocalFile(name="jan.csv", data=january_csv),
                LocalFile(name="other.csv", data=b"a,b,c,d,e\n1,2,3,4,5\n"),
            ],
            staging,
            warehouse,
            "trips",
        )

    rows = await warehouse.fetch_rows("SELECT COUNT(*) AS n FROM trips")
    assert rows[0]["n"] == 2
