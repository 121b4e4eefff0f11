"""
Script to import local files and/or URLs into a warehouse table

Usage:
    python scripts/run_import.py --table trips data/jan.csv https://example.com/feb.csv
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

import httpx

from core.config import settings
from core.database import create_ledger_engine, create_session_maker, init_ledger
from core.exceptions import LoggableError
from core.logging import setup_logging
from ingestion.inputs import input_from_argument
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine, StagingArea
from ingestion.progress import ProgressLog
from ingestion.runner import ImportRunner

logger = logging.getLogger(__name__)


def print_messages(messages):
    """Print the latest progress line, marking errors"""
    if not messages:
        return
    message = messages[-1]
    line = message.text
    if message.progress_text:
        line += f" {message.progress_text}"
    stream = sys.stderr if message.error else sys.stdout
    print(("ERROR: " if message.error else "") + line, file=stream, flush=True)


async def run_import(table: str, sources):
    """Run one import and return the process exit code"""
    inputs = [input_from_argument(source) for source in sources]

    ledger_engine = create_ledger_engine(settings.DATABASE_URL)
    await init_ledger(ledger_engine)
    session_maker = create_session_maker(ledger_engine)

    staging = StagingArea(settings.STAGING_DIR)
    warehouse = DuckDBQueryEngine.connect(settings.WAREHOUSE_PATH, staging)

    progress = ProgressLog()
    unsubscribe = progress.subscribe(print_messages)

    try:
        async with httpx.AsyncClient(timeout=settings.FETCH_TIMEOUT, follow_redirects=True) as client:
            async with session_maker() as session:
                runner = ImportRunner(session, staging, warehouse, client=client)
                run = await runner.run(inputs, table, progress)
        logger.info(f"Import {run.run_id} loaded {run.inputs_loaded} input(s) into {table}")
        return 0
    except LoggableError as e:
        logger.error(f"Import failed: {e.describe()}")
        return 1
    except Exception:
        logger.exception(f"Import into {table} failed")
        return 1
    finally:
        unsubscribe()
        warehouse.close()
        await ledger_engine.dispose()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import files or URLs into a warehouse table")
    parser.add_argument("sources", nargs="+", help="Local paths or http(s)/data: URLs, in load order")
    parser.add_argument("--table", default=settings.DEFAULT_TABLE, help="Target table name")
    args = parser.parse_args(argv)

    setup_logging()
    return asyncio.run(run_import(args.table, args.sources))


if __name__ == "__main__":
    sys.exit(main())
