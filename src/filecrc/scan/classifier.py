"""Comparison of scanned records against the prior snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from filecrc.snapshot.models import FileRecord, Snapshot, StatusFlag

REASON_TIMES_INCONSISTENT = "file times are inconsistent"
REASON_ONLY_SIZE = "only the size has changed"
REASON_ONLY_HASH = "only hash changed"
REASON_HASH_AND_SIZE = "hash and size changed but not modified timestamp"


class ChangeKind(Enum):
    """Outcome of comparing one file with its prior record."""

    INSERTED = "inserted"
    UNCHANGED = "unchanged"
    MISMATCHED = "mismatched"
    SUSPICIOUS = "suspicious"


@dataclass(slots=True, frozen=True)
class Classification:
    """Flagged record plus the outcome and, for suspicious files, the reason."""

    record: FileRecord
    outcome: ChangeKind
    reason: str | None = None


def suspicion_reason(current: FileRecord, prior: FileRecord) -> str | None:
    """Evaluate every suspicion rule in order; the last match is reported."""
    reason: str | None = None
    if current.accessed_ns < current.created_ns:
        reason = REASON_TIMES_INCONSISTENT
    same_times = current.times_equal(prior)
    same_size = current.size == prior.size
    same_hash = current.content_hash == prior.content_hash
    if not same_size and same_hash and same_times:
        reason = REASON_ONLY_SIZE
    if not same_hash and same_size and same_times:
        reason = REASON_ONLY_HASH
    if not same_hash and not same_size and current.modified_ns == prior.modified_ns:
        reason = REASON_HASH_AND_SIZE
    return reason


def classify_record(
    current: FileRecord, prior: FileRecord | None, *, hash_content: bool
) -> Classification:
    """Classify one scanned record; pure and deterministic."""
    if prior is None:
        return Classification(
            record=replace(current, flags=StatusFlag.INSERTED),
            outcome=ChangeKind.INSERTED,
        )
    if hash_content:
        reason = suspicion_reason(current, prior)
        if reason is not None:
            return Classification(
                record=replace(current, flags=StatusFlag.SUSPICIOUS),
                outcome=ChangeKind.SUSPICIOUS,
                reason=reason,
            )
        unchanged = current.fingerprint_equal(prior)
    else:
        unchanged = current.size == prior.size and current.times_equal(prior)
    if unchanged:
        return Classification(
            record=replace(current, flags=StatusFlag.NONE),
            outcome=ChangeKind.UNCHANGED,
        )
    return Classification(
        record=replace(current, flags=StatusFlag.MISMATCHED),
        outcome=ChangeKind.MISMATCHED,
    )


@dataclass(slots=True)
class RunContext:
    """Mutable state for one run: both snapshots and the running counters."""

    prior: Snapshot = field(default_factory=dict)
    current: Snapshot = field(default_factory=dict)
    added: int = 0
    unchanged: int = 0
    suspicious: int = 0
    mismatched: int = 0
    total_files: int = 0
    total_bytes: int = 0
    max_file_size: int = 0

    @property
    def prior_size(self) -> int:
        return len(self.prior)

    def deleted_count(self) -> int:
        """Prior entries the scan did not match."""
        return self.prior_size - (self.unchanged + self.suspicious + self.mismatched)

    def counters(self) -> dict[str, int]:
        """Return the counters as a plain mapping for reports and logs."""
        return {
            "added": self.added,
            "unchanged": self.unchanged,
            "suspicious": self.suspicious,
            "mismatched": self.mismatched,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "max_file_size": self.max_file_size,
        }


class ChangeClassifier:
    """Classifies scanned records into a RunContext."""

    def __init__(self, context: RunContext, *, hash_content: bool = True) -> None:
        self._context = context
        self._hash_content = hash_content

    @property
    def context(self) -> RunContext:
        return self._context

    def classify(self, record: FileRecord) -> Classification:
        """Classify one record, store it in the current snapshot and count it."""
        context = self._context
        result = classify_record(
            record, context.prior.get(record.key), hash_content=self._hash_content
        )
        context.current[result.record.key] = result.record
        context.total_files += 1
        context.total_bytes += record.size
        context.max_file_size = max(context.max_file_size, record.size)
        if result.outcome is ChangeKind.INSERTED:
            context.added += 1
        elif result.outcome is ChangeKind.SUSPICIOUS:
            context.suspicious += 1
        elif result.outcome is ChangeKind.MISMATCHED:
            context.mismatched += 1
        else:
            context.unchanged += 1
        return result
