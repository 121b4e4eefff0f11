"""
Unit tests for the import orchestrator
"""

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from core.exceptions import HttpStatusFailure, InvalidInputTypeError
from ingestion.base import DatabaseHandle
from ingestion.importer import build_load_statement, import_data_table
from ingestion.inputs import LocalFile, RemoteSource


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBuildLoadStatement:
    """Test the statement chosen for each input position"""

    def test_single_input_has_no_filename_column(self, recording_engine):
        sql = build_load_statement(recording_engine, "t", "data-0.csv", "a.csv", 0, 1)
        assert sql == "CREATE TABLE t AS SELECT * FROM 'data-0.csv'"

    def test_first_of_several_creates_with_filename(self, recording_engine):
        sql = build_load_statement(recording_engine, "t", "data-0.csv", "a.csv", 0, 2)
        assert sql == "CREATE TABLE t AS SELECT *, 'a.csv' AS filename FROM 'data-0.csv'"

    def test_later_inputs_insert_with_filename(self, recording_engine):
        sql = build_load_statement(recording_engine, "t", "data-1.csv", "b.csv", 1, 2)
        assert sql == "INSERT INTO t SELECT *, 'b.csv' AS filename FROM 'data-1.csv'"

    def test_source_name_is_quoted(self, recording_engine):
        sql = build_load_statement(
            recording_engine, "t", "data-1.csv", "x'; DROP TABLE t; --.csv", 1, 2
        )
        assert "'x''; DROP TABLE t; --.csv' AS filename" in sql


class TestImportDataTable:
    """Test the per-input register/query/drop protocol"""

    @pytest.mark.asyncio
    async def test_two_files_create_then_insert(self, calls, recording_db, recording_engine):
        inputs = [
            LocalFile(name="a.csv", data=b"id\n1\n"),
            LocalFile(name="b.csv", data=b"id\n2\n"),
        ]

        await import_data_table(inputs, recording_db, recording_engine, "t")

        assert calls == [
            ("register", "data-0.csv"),
            ("query", "CREATE TABLE t AS SELECT *, 'a.csv' AS filename FROM 'data-0.csv'"),
            ("drop", "data-0.csv"),
            ("register", "data-1.csv"),
            ("query", "INSERT INTO t SELECT *, 'b.csv' AS filename FROM 'data-1.csv'"),
            ("drop", "data-1.csv"),
        ]
        assert recording_db.buffers == {}

    @pytest.mark.asyncio
    async def test_single_input(self, calls, recording_db, recording_engine):
        await import_data_table(
            [LocalFile(name="a.parquet", data=b"PAR1")], recording_db, recording_engine, "t"
        )

        assert recording_engine.statements == ["CREATE TABLE t AS SELECT * FROM 'data-0.parquet'"]

    @pytest.mark.asyncio
    async def test_registers_input_bytes(self, recording_engine):
        database = Mock(spec=DatabaseHandle)
        database.register_file_buffer = AsyncMock()
        database.drop_file = AsyncMock()

        await import_data_table(
            [LocalFile(name="a.csv", data=b"id\n1\n")], database, recording_engine, "t"
        )

        database.register_file_buffer.assert_awaited_once_with("data-0.csv", b"id\n1\n")
        database.drop_file.assert_awaited_once_with("data-0.csv")

    @pytest.mark.asyncio
    async def test_reads_local_file_from_disk(self, tmp_path, recording_engine):
        path = tmp_path / "trips.json"
        path.write_bytes(b'[{"id": 1}]')
        database = Mock(spec=DatabaseHandle)
        database.register_file_buffer = AsyncMock()
        database.drop_file = AsyncMock()

        await import_data_table([LocalFile.from_path(path)], database, recording_engine, "t")

        database.register_file_buffer.assert_awaited_once_with("data-0.json", b'[{"id": 1}]')

    @pytest.mark.asyncio
    async def test_unresolved_extension_is_empty_suffix(self, calls, recording_db, recording_engine):
        await import_data_table(
            [LocalFile(name="README", data=b"x")], recording_db, recording_engine, "t"
        )

        assert ("register", "data-0") in calls

    @pytest.mark.asyncio
    async def test_remote_source_uses_url_as_name(self, calls, recording_db, recording_engine, progress):
        url = "https://data.example.com/feb.csv?token=abc"
        inputs = [LocalFile(name="jan.csv", data=b"id\n1\n"), RemoteSource(url=url)]

        async with client_for(lambda request: httpx.Response(200, content=b"id\n2\n")) as client:
            await import_data_table(
                inputs, recording_db, recording_engine, "t", progress, client=client
            )

        assert recording_engine.statements[1] == (
            f"INSERT INTO t SELECT *, '{url}' AS filename FROM 'data-1.csv'"
        )
        texts = [m.text for m in progress.messages]
        assert texts == ["Loading data from file...", "Loading data from URL..."]
        assert progress.messages[-1].progress_text == "5 B"

    @pytest.mark.asyncio
    async def test_on_loaded_called_after_each_drop(self, calls, recording_db, recording_engine):
        loaded = []

        def on_loaded(index, name):
            loaded.append((index, name, len(calls)))

        inputs = [LocalFile(name="a.csv", data=b"1"), LocalFile(name="b.csv", data=b"2")]
        await import_data_table(inputs, recording_db, recording_engine, "t", on_loaded=on_loaded)

        assert loaded == [(0, "a.csv", 3), (1, "b.csv", 6)]

    @pytest.mark.asyncio
    async def test_invalid_input_touches_nothing(self, calls, recording_db, recording_engine):
        inputs = [LocalFile(name="a.csv", data=b"1"), {"url": "https://example.com/b.csv"}]

        with pytest.raises(InvalidInputTypeError) as exc_info:
            await import_data_table(inputs, recording_db, recording_engine, "t")

        assert calls == []
        assert exc_info.value.message == "invalid input type"
        assert exc_info.value.context["index"] == 1
        assert exc_info.value.context["input_type"] == "dict"

    @pytest.mark.asyncio
    async def test_fetch_failure_mid_sequence(self, calls, recording_db, recording_engine):
        def handler(request):
            return httpx.Response(404)

        inputs = [
            LocalFile(name="a.csv", data=b"id\n1\n"),
            RemoteSource(url="https://data.example.com/missing.csv"),
            LocalFile(name="c.csv", data=b"id\n3\n"),
        ]

        async with client_for(handler) as client:
            with pytest.raises(HttpStatusFailure):
                await import_data_table(
                    inputs, recording_db, recording_engine, "t", client=client
                )

        assert [c for c in calls if c[0] == "drop"] == [("drop", "data-0.csv")]
        assert len(recording_engine.statements) == 1
        assert recording_engine.statements[0].startswith("CREATE TABLE t")

    @pytest.mark.asyncio
    async def test_query_failure_propagates_unchanged(self, calls, recording_db, recording_engine):
        recording_engine.fail_on = "data-1"
        inputs = [LocalFile(name="a.csv", data=b"1"), LocalFile(name="b.csv", data=b"2")]

        with pytest.raises(RuntimeError, match="Binder Error"):
            await import_data_table(inputs, recording_db, recording_engine, "t")

        # The failing input's buffer stays registered
        assert calls[-1] == ("query", "INSERT INTO t SELECT *, 'b.csv' AS filename FROM 'data-1.csv'")
        assert "data-1.csv" in recording_db.buffers

    @pytest.mark.asyncio
    async def test_empty_input_list_does_nothing(self, calls, recording_db, recording_engine):
        await import_data_table([], recording_db, recording_engine, "t")
        assert calls == []
