"""Structured JSONL run log utilities."""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

SECRET_KEYS = frozenset({"password", "code", "token"})
TEXT_KEYS = frozenset({"reason", "mode", "error", "error_type", "previous"})

RUN_EVENTS = (
    "run_started",
    "prior_loaded",
    "first_run",
    "directory_skipped",
    "directory_unreadable",
    "file_skipped",
    "file_inserted",
    "file_mismatched",
    "file_suspicious",
    "archive_written",
    "archive_rotated",
    "run_completed",
    "run_failed",
    "notification_sent",
    "notification_failed",
)


@dataclass(slots=True, frozen=True)
class RunEvent:
    """Sanitized representation of one thing that happened during a run."""

    timestamp: str
    run_id: str
    event: str
    path: str | None
    detail: dict[str, object]


class RunLogger(Protocol):
    """Anything that accepts run events."""

    def emit(self, event: str, path: str | Path | None = None, **detail: object) -> None: ...


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_run_id() -> str:
    return uuid.uuid4().hex


def sanitize_detail(detail: dict[str, object]) -> dict[str, object]:
    """Sanitize event details to avoid logging secret-like values."""
    sanitized: dict[str, object] = {}
    for key in sorted(detail.keys()):
        value = detail[key]
        if SECRET_KEYS.intersection(key.lower().split("_")):
            sanitized[f"{key}_present"] = bool(value)
            continue
        if key in TEXT_KEYS and isinstance(value, str):
            sanitized[key] = value
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, (list, tuple)):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlRunLogger:
    """Append-only JSONL run logger and bounded reader."""

    def __init__(self, path: Path, run_id: str | None = None) -> None:
        self._path = path
        self._run_id = run_id or new_run_id()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    @property
    def run_id(self) -> str:
        return self._run_id

    def append(self, event: RunEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def emit(self, event: str, path: str | Path | None = None, **detail: object) -> None:
        """Build, sanitize and append one event for the current run."""
        if event not in RUN_EVENTS:
            raise ValueError(f"Unknown run event '{event}'.")
        self.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=self._run_id,
                event=event,
                path=None if path is None else str(path),
                detail=sanitize_detail(detail),
            )
        )

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Read recent events, optionally filtered by timestamp lower bound."""
        if limit < 1:
            return []
        entries: list[dict[str, object]] = []
        if not self._path.exists():
            return entries
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                entries.append(record)
        if len(entries) <= limit:
            return entries
        return entries[-limit:]


class NullRunLogger:
    """Run logger used when the run log is disabled; keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str | None, dict[str, object]]] = []

    def emit(self, event: str, path: str | Path | None = None, **detail: object) -> None:
        if event not in RUN_EVENTS:
            raise ValueError(f"Unknown run event '{event}'.")
        self.events.append((event, None if path is None else str(path), sanitize_detail(detail)))
