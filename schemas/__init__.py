"""
Pydantic schemas for data validation and serialization.

Schemas:
    progress: LogMessage, the unit of the user-facing progress log
    api: API endpoint request/response schemas

Usage:
    from schemas.progress import LogMessage
    from schemas.api import ImportRequest, ImportRunResponse

Example:
    request = ImportRequest(table="trips", urls=["https://example.com/a.csv"])
"""

__all__ = [
    "LogMessage",
    "HealthCheckResponse",
    "ImportRequest",
    "ImportAcceptedResponse",
    "ImportRunResponse",
    "ImportListResponse",
    "TableResponse",
]
