"""
Per-request audit trail backed by MongoDB.

One document per original asset URL; each request seen for that URL owns an
append-only list of events. Writes are best-effort: a failed write is
reported on the operational log and never interrupts the job.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from assetflow.models.log import EventStatus, LogDocument, LogEvent

logger = logging.getLogger(__name__)

_LEVEL_BY_STATUS = {
    EventStatus.FAILED: logging.ERROR,
    EventStatus.ERROR: logging.ERROR,
    EventStatus.WARNING: logging.WARNING,
}


class RequestLogHandle:
    """Appends events to one (original URL, request id) entry."""

    def __init__(self, collection: Collection, original_url: str, request_id: str, source: str):
        self.collection = collection
        self.original_url = original_url
        self.request_id = request_id
        self.source = source

    def append(self, status: EventStatus, message: str, error: Optional[str] = None) -> None:
        """Push one event onto this request's event list. Never raises."""
        event = LogEvent(status=status, message=message, error=error)
        try:
            result = self.collection.update_one(
                {"originalUrl": self.original_url, "requests.requestId": self.request_id},
                {"$push": {"requests.$.events": event.to_document()}},
            )
        except PyMongoError as e:
            logger.error(
                "Failed to update log",
                extra={"request_id": self.request_id, "error": str(e)},
                exc_info=True,
            )
            return

        if result.matched_count == 0:
            logger.error(
                "Failed to update log: request entry not found",
                extra={
                    "request_id": self.request_id,
                    "original_url": self.original_url,
                    "status": status.value,
                },
            )
            return

        logger.log(
            _LEVEL_BY_STATUS.get(status, logging.INFO),
            f"Log saved | {message}",
            extra={
                "request_id": self.request_id,
                "source": self.source,
                "original_url": self.original_url,
                "status": status.value,
            },
        )

    def append_exception(self, status: EventStatus, message: str, exc: BaseException) -> None:
        """Append an event carrying the formatted traceback of ``exc``."""
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.append(status, message, error=detail)


class EventLogger:
    """Opens request-scoped handles on the log collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def ensure_indexes(self) -> None:
        """Create the unique index that keeps one document per original URL."""
        self.collection.create_index(
            [("originalUrl", ASCENDING)], unique=True, name="originalUrl_unique"
        )

    def _ensure_document(self, original_url: str) -> None:
        try:
            self.collection.update_one(
                {"originalUrl": original_url},
                {"$setOnInsert": {"originalUrl": original_url, "requests": []}},
                upsert=True,
            )
        except DuplicateKeyError:
            # Another worker inserted the document between our match and insert
            pass

    def open_request_log(
        self,
        request_id: str,
        source: str,
        original_url: str,
        processing_config: Optional[Dict[str, Any]] = None,
    ) -> RequestLogHandle:
        """Create the log document and request entry if missing, and return a handle.

        Repeated calls with the same ``original_url`` and ``request_id`` leave
        exactly one request entry.

        Args:
            request_id: Request identity assigned at intake
            source: Caller identifier
            original_url: URL of the original asset (document key)
            processing_config: Raw asset config, stored with the entry

        Returns:
            RequestLogHandle bound to the entry
        """
        try:
            self._ensure_document(original_url)
            self.collection.update_one(
                {"originalUrl": original_url, "requests.requestId": {"$ne": request_id}},
                {
                    "$push": {
                        "requests": {
                            "requestId": request_id,
                            "source": source,
                            "processingConfig": processing_config,
                            "events": [],
                        }
                    }
                },
            )
        except PyMongoError as e:
            logger.error(
                "Failed to open request log",
                extra={"request_id": request_id, "original_url": original_url, "error": str(e)},
                exc_info=True,
            )

        return RequestLogHandle(self.collection, original_url, request_id, source)

    def get_log(self, original_url: str) -> Optional[LogDocument]:
        """Return the audit trail for ``original_url``, or None if none exists."""
        doc = self.collection.find_one({"originalUrl": original_url}, {"_id": 0})
        if doc is None:
            return None
        return LogDocument.model_validate(doc)
