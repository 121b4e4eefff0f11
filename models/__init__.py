"""
SQLAlchemy ORM models for the import run ledger.

Models:
    base: Base declarative class and the ImportStatus enum
    import_run: One row per import into a warehouse table

Database Schema:
    The ledger is deliberately separate from the DuckDB warehouse that holds
    imported data. It defaults to SQLite (aiosqlite) and works on any async
    SQLAlchemy backend.

Usage:
    from models.import_run import ImportRun
    from models.base import ImportStatus

Example:
    run = ImportRun(table_name="dataset", input_count=2, sources=["a.csv", "b.csv"])
    session.add(run)
    await session.commit()
"""

__all__ = [
    "Base",
    "ImportStatus",
    "ImportRun",
]
