"""Observability helpers: structured logging with request context."""

from .logger import StructuredFormatter, StructuredLogger, clear_context, get_logger, set_context

__all__ = [
    "StructuredFormatter",
    "StructuredLogger",
    "get_logger",
    "set_context",
    "clear_context",
]
