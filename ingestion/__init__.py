"""
Import pipeline components for loading datasets into warehouse tables.

Modules:
    inputs: LocalFile / RemoteSource input variants
    extensions: File extension resolution from names, URLs and data: URLs
    progress: Observable progress log shown to the person importing data
    fetcher: Streaming download with byte progress and failure classification
    importer: Orchestrator that stages inputs and creates/appends the table
    runner: Run tracking, per-table serialization and failure reporting
    base: Abstract warehouse collaborators (DatabaseHandle, QueryEngine)

Subpackages:
    loaders: DuckDB staging area and query engine

Architecture:
    Each input goes through the same steps, strictly in order:

    1. Obtain bytes - read the local file or stream the URL
    2. Stage - register the bytes as ``data-{i}{ext}``
    3. Load - CREATE TABLE for the first input, INSERT for the rest
       (with a ``filename`` column when there is more than one input)
    4. Release - drop the staged buffer

Usage:
    from ingestion.inputs import LocalFile, RemoteSource
    from ingestion.importer import import_data_table
    from ingestion.progress import ProgressLog

Example:
    staging = StagingArea(".staging")
    warehouse = DuckDBQueryEngine.connect("warehouse.duckdb", staging)
    progress = ProgressLog()

    await import_data_table(
        [LocalFile.from_path("jan.csv"), RemoteSource(url="https://example.com/feb.csv")],
        staging,
        warehouse,
        "trips",
        progress,
    )

Error Handling:
    Classified failures come from core.exceptions; warehouse errors are
    passed through unchanged. Nothing is retried.
"""

__all__ = [
    "LocalFile",
    "RemoteSource",
    "ProgressLog",
    "resolve_extension",
    "fetch_with_progress",
    "import_data_table",
    "ImportRunner",
    "DuckDBQueryEngine",
    "StagingArea",
]
