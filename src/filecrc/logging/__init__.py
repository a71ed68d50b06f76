"""Structured logging utilities."""

from .run_log import (
    RUN_EVENTS,
    JsonlRunLogger,
    NullRunLogger,
    RunEvent,
    RunLogger,
    sanitize_detail,
    utc_timestamp,
)

__all__ = [
    "JsonlRunLogger",
    "NullRunLogger",
    "RUN_EVENTS",
    "RunEvent",
    "RunLogger",
    "sanitize_detail",
    "utc_timestamp",
]
