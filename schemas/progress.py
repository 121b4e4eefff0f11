"""
Progress log message schema
"""

from pydantic import BaseModel, Field
from typing import Optional


class LogMessage(BaseModel):
    """A log message for the data importing UI"""
    text: str
    markdown: Optional[bool] = Field(None, description="Render text as markdown")
    progress: Optional[float] = Field(None, description="Completion percentage, if known")
    progress_text: Optional[str] = Field(None, description="Short progress label, e.g. a byte count")
    error: Optional[bool] = Field(None, description="Marks the message as a failure")

    class Config:
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "text": "Loading data from URL...",
                "progress_text": "1.50 MB"
            }
        }
