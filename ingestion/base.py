"""
Abstract warehouse collaborators used by the import orchestrator
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class DatabaseHandle(ABC):
    """
    Holds named byte buffers the query engine can read as table sources.

    A buffer registered as ``data-0.csv`` is addressable from SQL as
    ``'data-0.csv'`` until it is dropped.
    """

    @abstractmethod
    async def register_file_buffer(self, name: str, data: bytes) -> None:
        """Make ``data`` readable under ``name``"""
        pass

    @abstractmethod
    async def drop_file(self, name: str) -> None:
        """Release the buffer registered under ``name``"""
        pass


class QueryEngine(ABC):
    """Executes SQL text and quotes literal values for it."""

    @abstractmethod
    async def query(self, sql: str) -> None:
        """Execute a statement"""
        pass

    @abstractmethod
    def literal(self, value: str) -> str:
        """Quote ``value`` as a SQL string literal"""
        pass

    @abstractmethod
    async def fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        """Execute a query and return its rows keyed by column name"""
        pass
