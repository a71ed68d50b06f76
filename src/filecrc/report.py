"""Summaries and record selection for stored snapshots."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from filecrc.config import ConfigError
from filecrc.snapshot.codec import encode_status, format_timestamp
from filecrc.snapshot.models import FileRecord, StatusFlag, normalize_path


@dataclass(slots=True, frozen=True)
class SnapshotSummary:
    """Counts of records by the findings persisted with them."""

    total: int
    suspicious: int
    inserted: int
    modified: int
    unchanged: int


def summarize(records: Iterable[FileRecord]) -> SnapshotSummary:
    total = suspicious = inserted = modified = unchanged = 0
    for record in records:
        total += 1
        if record.flags == StatusFlag.NONE:
            unchanged += 1
            continue
        suspicious += int(record.is_suspicious)
        inserted += int(record.is_inserted)
        modified += int(record.is_mismatched)
    return SnapshotSummary(
        total=total,
        suspicious=suspicious,
        inserted=inserted,
        modified=modified,
        unchanged=unchanged,
    )


def compile_name_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as error:
        raise ConfigError(f"Invalid name pattern '{pattern}': {error}") from None


def select_records(
    records: Iterable[FileRecord],
    *,
    suspicious: bool = False,
    added: bool = False,
    modified: bool = False,
    name_pattern: str | None = None,
) -> list[FileRecord]:
    """Pick records by finding, or by a regex matched against any path component.

    The name pattern cannot be combined with the finding selectors.
    """
    if name_pattern is not None:
        if suspicious or added or modified:
            raise ConfigError(
                "The name search is mutually exclusive with the suspicious, added "
                "and modified selectors."
            )
        regex = compile_name_pattern(name_pattern)
        return [
            record
            for record in records
            if any(regex.search(part) for part in normalize_path(record.path).split("/"))
        ]
    return [
        record
        for record in records
        if (suspicious and record.is_suspicious)
        or (added and record.is_inserted)
        or (modified and record.is_mismatched)
    ]


def describe_record(record: FileRecord) -> str:
    """Multi-line display text for one record."""
    return (
        f"File name: {record.path}\n"
        f"Flags: '{encode_status(record.flags)}', Size: {record.size:,}, "
        f"CRC: {record.content_hash}\n"
        f"Created: {format_timestamp(record.created_ns)}, "
        f"Modified: {format_timestamp(record.modified_ns)}, "
        f"Accessed: {format_timestamp(record.accessed_ns)}\n"
    )


def format_summary(summary: SnapshotSummary, selected: int) -> str:
    lines = [
        f"Total records read:      {summary.total:,}",
        f"Total records selected:  {selected:,}",
        f"Suspicious records read: {summary.suspicious:,}",
        f"Inserted records read:   {summary.inserted:,}",
        f"Modified records read:   {summary.modified:,}",
        f"Unchanged records read:  {summary.unchanged:,}",
    ]
    return "\n".join(lines) + "\n"
