"""
Core utilities and configuration for the data import service.

This package provides foundational components used throughout the import pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Ledger engine and session management
    exceptions: Classified error hierarchy rendered by the progress log
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_ledger_engine, create_session_maker
    from core.exceptions import NetworkFailure, HttpStatusFailure
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get a ledger session
    engine = create_ledger_engine()
    async with create_session_maker(engine)() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_ledger_engine",
    "create_session_maker",
    "init_ledger",
    # Exceptions
    "LoggableError",
    "InvalidInputTypeError",
    "FetchError",
    "NetworkFailure",
    "HttpStatusFailure",
    "EmptyBodyFailure",
    "StreamReadFailure",
]
