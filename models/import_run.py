from sqlalchemy import Column, Integer, String, Enum, DateTime, Float, Text, JSON, Index
from datetime import datetime, timezone
import uuid
from models.base import Base, ImportStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ImportRun(Base):
    """
    Tracks metadata for each import into a warehouse table.

    Purpose:
    - Audit trail of all imports
    - Record how far a failed import got (inputs committed before the failure
      stay in the table, so ``inputs_loaded`` tells the caller what is there)
    - Error classification for user feedback
    """
    __tablename__ = "import_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(36), default=lambda: str(uuid.uuid4()), unique=True, nullable=False, index=True)

    # Target
    table_name = Column(String(255), nullable=False, index=True)

    # Run metadata
    status = Column(Enum(ImportStatus), default=ImportStatus.PENDING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=_utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    input_count = Column(Integer, default=0, nullable=False)
    inputs_loaded = Column(Integer, default=0, nullable=False)
    sources = Column(JSON, nullable=True)  # Source names/URLs in input order

    # Error tracking
    error_kind = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_import_run_table_started", "table_name", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<ImportRun {self.run_id} table={self.table_name} status={self.status}>"
