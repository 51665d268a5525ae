"""Structured logging for storage operations.

Provides context-aware JSON logging with automatic request/operation tagging.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any

# Context variables for automatic tagging
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_operation: ContextVar[str | None] = ContextVar("operation", default=None)


def set_context(
    request_id: str | None = None,
    operation: str | None = None,
) -> None:
    """Set logging context variables."""
    if request_id is not None:
        _request_id.set(request_id)
    if operation is not None:
        _operation.set(operation)


def clear_context() -> None:
    """Clear all logging context variables."""
    _request_id.set(None)
    _operation.set(None)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if request_id := _request_id.get():
            log_data["request_id"] = request_id
        if operation := _operation.get():
            log_data["operation"] = operation

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Logger with structured output and context awareness."""

    def __init__(self, name: str, level: int = logging.INFO):
        """Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter())
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        extra_data: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional extra data."""
        extra = kwargs.pop("extra", {})
        if extra_data:
            extra["extra_data"] = extra_data
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)

    def bucket_provisioned(self, bucket_name: str, public: bool) -> None:
        """Log bucket created with its policy."""
        self.info(
            f"Bucket {bucket_name} created",
            extra_data={"bucket": bucket_name, "policy": "public" if public else "private"},
        )

    def object_uploaded(
        self,
        bucket_name: str,
        object_name: str,
        size_bytes: int,
        content_type: str | None = None,
    ) -> None:
        """Log object written to the backend."""
        self.info(
            f"Uploaded {bucket_name}/{object_name}",
            extra_data={
                "bucket": bucket_name,
                "object": object_name,
                "size_bytes": size_bytes,
                "content_type": content_type,
            },
        )

    def resolution_failed(
        self,
        field_path: str,
        error: str,
        bucket_name: str | None = None,
        object_name: str | None = None,
    ) -> None:
        """Log a reference left unresolved during a rewrite."""
        self.warning(
            f"Could not resolve stored reference at {field_path}: {error}",
            extra_data={
                "field_path": field_path,
                "bucket": bucket_name,
                "object": object_name,
                "error": error,
            },
        )


# Global logger cache
_loggers: dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]
