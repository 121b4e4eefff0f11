"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Import run ledger
    DATABASE_URL: str = "sqlite+aiosqlite:///./imports.db"

    # Warehouse (DuckDB) and the directory temporary buffers are staged in
    WAREHOUSE_PATH: str = "warehouse.duckdb"
    STAGING_DIR: str = ".staging"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Import configuration
    FETCH_TIMEOUT: float = 60.0
    DEFAULT_TABLE: str = "dataset"
    PREVIEW_ROWS: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
