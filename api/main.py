"""
FastAPI application initialization
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from api.jobs import ImportJobs
from api.middleware import RequestContextMiddleware
from api.routes import health, imports, tables
from core.config import Settings, settings
from core.database import create_ledger_engine, create_session_maker, init_ledger
from core.logging import setup_logging
from ingestion.loaders.duckdb_loader import DuckDBQueryEngine, StagingArea
from ingestion.runner import TableLocks
import logging

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        app_settings: Settings to use instead of the environment-derived ones
        transport: HTTP transport for remote fetches (tests pass a mock)
    """
    config = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting data import API")
        logger.info(f"Environment: {config.ENVIRONMENT}")

        ledger_engine = create_ledger_engine(config.DATABASE_URL)
        await init_ledger(ledger_engine)

        staging = StagingArea(config.STAGING_DIR)

        app.state.settings = config
        app.state.ledger_engine = ledger_engine
        app.state.session_maker = create_session_maker(ledger_engine)
        app.state.staging = staging
        app.state.warehouse = DuckDBQueryEngine.connect(config.WAREHOUSE_PATH, staging)
        app.state.http_client = httpx.AsyncClient(
            timeout=config.FETCH_TIMEOUT,
            follow_redirects=True,
            transport=transport
        )
        app.state.jobs = ImportJobs()
        app.state.locks = TableLocks()

        yield

        logger.info("Shutting down data import API")
        await app.state.http_client.aclose()
        app.state.warehouse.close()
        await ledger_engine.dispose()

    app = FastAPI(
        title="Data Import API",
        description="Load files and URLs into queryable warehouse tables",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.add_middleware(RequestContextMiddleware)

    app.include_router(health.router)
    app.include_router(imports.router)
    app.include_router(tables.router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Data Import API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "imports": "/imports",
                "tables": "/tables/{table}"
            }
        }

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.API_HOST, port=settings.API_PORT)
