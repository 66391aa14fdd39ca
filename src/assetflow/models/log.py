"""Audit trail models stored in the ``logs`` collection."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventStatus(str, Enum):
    """Status of a single audit event."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"
    WARNING = "warning"


class LogEvent(BaseModel):
    """One timestamped status/message append within a request entry."""

    model_config = ConfigDict(populate_by_name=True)

    status: EventStatus
    message: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
    error: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "createdAt": self.created_at,
            "error": self.error,
        }


class RequestEntry(BaseModel):
    """Per-job audit record nested under a log document."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId")
    source: str
    processing_config: Optional[Dict[str, Any]] = Field(None, alias="processingConfig")
    events: List[LogEvent] = Field(default_factory=list)


class LogDocument(BaseModel):
    """All requests ever seen for one original asset URL."""

    model_config = ConfigDict(populate_by_name=True)

    original_url: str = Field(..., alias="originalUrl")
    requests: List[RequestEntry] = Field(default_factory=list)
