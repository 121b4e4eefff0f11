"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator, List, Tuple

from core.database import init_ledger
from ingestion.base import DatabaseHandle, QueryEngine
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine, StagingArea
from ingestion.progress import ProgressLog

# In-memory ledger shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test ledger engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    await init_ledger(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create ledger session for tests"""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def progress():
    """Fresh progress log"""
    return ProgressLog()


@pytest.fixture
def staging(tmp_path):
    """Staging area in a temporary directory"""
    return StagingArea(tmp_path / "staging")


@pytest.fixture
def warehouse(staging):
    """In-memory DuckDB warehouse reading from the staging area"""
    engine = DuckDBQueryEngine.connect(":memory:", staging)
    yield engine
    engine.close()


# ============================================================================
# Recording collaborators
# ============================================================================

class RecordingDatabase(DatabaseHandle):
    """Database handle that records calls into a shared list"""

    def __init__(self, calls: List[Tuple[str, str]]):
        self.calls = calls
        self.buffers = {}

    async def register_file_buffer(self, name: str, data: bytes) -> None:
        self.calls.append(("register", name))
        self.buffers[name] = data

    async def drop_file(self, name: str) -> None:
        self.calls.append(("drop", name))
        self.buffers.pop(name, None)


class RecordingEngine(QueryEngine):
    """Query engine that records statements into a shared list"""

    def __init__(self, calls: List[Tuple[str, str]], fail_on: str = None):
        self.calls = calls
        self.fail_on = fail_on

    def literal(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    async def query(self, sql: str) -> None:
        self.calls.append(("query", sql))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"Binder Error: cannot read {self.fail_on}")

    async def fetch_rows(self, sql: str):
        return []

    @property
    def statements(self) -> List[str]:
        return [sql for kind, sql in self.calls if kind == "query"]


@pytest.fixture
def calls():
    return []


@pytest.fixture
def recording_db(calls):
    return RecordingDatabase(calls)


@pytest.fixture
def recording_engine(calls):
    return RecordingEngine(calls)


# ============================================================================
# Sample data
# ============================================================================

@pytest.fixture
def january_csv():
    """Small CSV dataset"""
    return b"id,city,fare\n1,Lisbon,12.5\n2,Porto,8.0\n"


@pytest.fixture
def february_csv():
    """CSV dataset with the same columns as january_csv"""
    return b"id,city,fare\n3,Braga,15.25\n"
