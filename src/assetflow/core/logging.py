"""Logging configuration for AssetFlow."""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

# Context variable for storing the request id of the job being processed
request_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)

_STANDARD_RECORD_FIELDS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "getMessage", "taskName",
}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for log aggregation.

    Formats log records as single-line JSON objects. Fields passed through
    ``extra={...}`` are copied into the object, and the request id of the
    job in flight is attached when one is set.
    """

    SEVERITY_MAP = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as single-line JSON.

        Args:
            record: Log record to format

        Returns:
            Single-line JSON string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_context.get()
        if request_id:
            log_entry["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS:
                log_entry[key] = value

        if record.exc_info:
            exc_text = "".join(traceback.format_exception(*record.exc_info))
            log_entry["exception"] = exc_text
            log_entry["exception_type"] = record.exc_info[0].__name__ if record.exc_info[0] else "Unknown"
            log_entry["exception_message"] = str(record.exc_info[1]) if record.exc_info[1] else ""

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Configure structured logging for the API and the worker.

    Local development gets a plain text format on stdout; every other
    environment gets single-line JSON. When ``LOG_DIR`` is set, ``worker.log``
    (INFO and above) and ``error.log`` (ERROR and above) are written there too.
    """
    from assetflow.core.config import settings

    log_level = logging.DEBUG if settings.ENV == "local" else settings.log_level

    if settings.ENV == "local":
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = StructuredLogFormatter()

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        worker_file = logging.FileHandler(log_dir / "worker.log")
        worker_file.setLevel(logging.INFO)
        worker_file.setFormatter(StructuredLogFormatter())
        handlers.append(worker_file)

        error_file = logging.FileHandler(log_dir / "error.log")
        error_file.setLevel(logging.ERROR)
        error_file.setFormatter(StructuredLogFormatter())
        handlers.append(error_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    # Route uvicorn and celery loggers through the same handlers
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error", "celery"]:
        named_logger = logging.getLogger(logger_name)
        named_logger.setLevel(log_level)
        named_logger.handlers.clear()
        for handler in handlers:
            named_logger.addHandler(handler)
        named_logger.propagate = False
