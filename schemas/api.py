"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import ImportStatus
from schemas.progress import LogMessage

TABLE_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]{0,62}$"


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime
    warehouse_connected: bool
    ledger_connected: bool
    active_imports: int = 0

    @classmethod
    def build(cls, warehouse_connected: bool, ledger_connected: bool, active_imports: int = 0):
        """Derive the overall status from component connectivity"""
        if not warehouse_connected:
            status = "unhealthy"
        elif not ledger_connected:
            status = "degraded"
        else:
            status = "healthy"
        return cls(
            status=status,
            timestamp=datetime.utcnow(),
            warehouse_connected=warehouse_connected,
            ledger_connected=ledger_connected,
            active_imports=active_imports
        )


# ============================================================================
# Import Schemas
# ============================================================================

class ImportRequest(BaseModel):
    """Request body for submitting an import"""
    table: str = Field(..., pattern=TABLE_NAME_PATTERN, description="Target table (created by the import)")
    urls: List[str] = Field(..., min_length=1, description="Sources in load order (http(s) or data: URLs)")

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v):
        for url in v:
            if not url.startswith(("http://", "https://", "data:")):
                raise ValueError(f"unsupported URL scheme: {url[:50]}")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "table": "trips",
                "urls": [
                    "https://example.com/trips-2024-01.parquet",
                    "https://example.com/trips-2024-02.parquet"
                ]
            }
        }


class ImportAcceptedResponse(BaseModel):
    """Response for an accepted import submission"""
    run_id: str
    table: str
    status: ImportStatus = ImportStatus.PENDING
    status_url: str

    class Config:
        use_enum_values = True


class ImportRunResponse(BaseModel):
    """Import run record with its progress log"""
    run_id: str
    table_name: str
    status: ImportStatus
    input_count: int = 0
    inputs_loaded: int = 0
    sources: List[str] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    messages: List[LogMessage] = Field(default_factory=list)

    @classmethod
    def from_run(cls, run, messages=()):
        return cls(
            run_id=run.run_id,
            table_name=run.table_name,
            status=run.status,
            input_count=run.input_count,
            inputs_loaded=run.inputs_loaded,
            sources=run.sources or [],
            started_at=run.started_at,
            completed_at=run.completed_at,
            duration_seconds=run.duration_seconds,
            error_kind=run.error_kind,
            error_message=run.error_message,
            messages=list(messages)
        )

    class Config:
        use_enum_values = True


class ImportListResponse(BaseModel):
    """Recent import runs, newest first"""
    runs: List[ImportRunResponse]
    total: int


# ============================================================================
# Table Schemas
# ============================================================================

class ColumnInfo(BaseModel):
    name: str
    type: str


class TableResponse(BaseModel):
    """Warehouse table summary"""
    table: str
    columns: List[ColumnInfo]
    row_count: int
    preview: List[Dict[str, Any]] = Field(default_factory=list)
