"""Typed models for snapshot state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag


class StatusFlag(IntFlag):
    """Per-run comparison findings for one record."""

    NONE = 0
    SUSPICIOUS = 0x01
    MISMATCHED = 0x02
    INSERTED = 0x04


@dataclass(slots=True, frozen=True)
class FileRecord:
    """Fingerprint of a single scanned file."""

    path: str
    size: int
    content_hash: int
    created_ns: int
    accessed_ns: int
    modified_ns: int
    flags: StatusFlag = StatusFlag.NONE

    @property
    def key(self) -> str:
        """Return the case-insensitive snapshot key for this record."""
        return snapshot_key(self.path)

    @property
    def is_suspicious(self) -> bool:
        return bool(self.flags & StatusFlag.SUSPICIOUS)

    @property
    def is_mismatched(self) -> bool:
        return bool(self.flags & StatusFlag.MISMATCHED)

    @property
    def is_inserted(self) -> bool:
        return bool(self.flags & StatusFlag.INSERTED)

    def times_equal(self, other: FileRecord) -> bool:
        """Return True when all three timestamps match."""
        return (
            self.created_ns == other.created_ns
            and self.accessed_ns == other.accessed_ns
            and self.modified_ns == other.modified_ns
        )

    def fingerprint_equal(self, other: FileRecord) -> bool:
        """Return True when size, hash and all timestamps match (flags ignored)."""
        return (
            self.times_equal(other)
            and self.size == other.size
            and self.content_hash == other.content_hash
        )


Snapshot = dict[str, FileRecord]


def normalize_path(path: str) -> str:
    """Normalize path separators to forward slashes."""
    return path.replace("\\", "/")


def snapshot_key(path: str) -> str:
    """Build the lookup key for a path; display values keep their case."""
    return normalize_path(path).lower()
