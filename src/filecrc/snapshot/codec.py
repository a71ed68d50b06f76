"""Line-oriented snapshot serialization with status-flag prefixes."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone
from typing import Final

from filecrc.snapshot.models import FileRecord, Snapshot, StatusFlag

FIELD_SEP: Final = "|"
PREFIX_SEP: Final = ":"
PREFIX_SIZE: Final = 3
CODE_MISSING: Final = "-"
FIELD_COUNT: Final = 6
MAX_HASH: Final = 2**64 - 1

# Column order is fixed: suspicious, mismatched, inserted.
_PREFIX_CODES: Final[tuple[tuple[StatusFlag, str], ...]] = (
    (StatusFlag.SUSPICIOUS, "S"),
    (StatusFlag.MISMATCHED, "M"),
    (StatusFlag.INSERTED, "N"),
)

_TIMESTAMP_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]{1,9}))?"
    r"(Z|[+-][0-9]{2}:[0-9]{2})"
)
_DECIMAL_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9]+")
_EPOCH: Final = datetime(1970, 1, 1, tzinfo=UTC)
_NS_PER_SECOND: Final = 1_000_000_000
_FORBIDDEN_PATH_CHARS: Final = (FIELD_SEP, "\n", "\r")


class SnapshotFormatError(ValueError):
    """Raised when a snapshot line cannot be encoded or decoded."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


def format_timestamp(value_ns: int) -> str:
    """Format epoch nanoseconds as RFC 3339 UTC with trimmed fraction."""
    seconds, fraction = divmod(value_ns, _NS_PER_SECOND)
    moment = _EPOCH + timedelta(seconds=seconds)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    return text + "Z"


def parse_timestamp(text: str) -> int:
    """Parse an RFC 3339 timestamp into epoch nanoseconds."""
    match = _TIMESTAMP_PATTERN.fullmatch(text)
    if match is None:
        raise SnapshotFormatError(f"invalid timestamp '{text}'")
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    fraction_text = match.group(7) or ""
    zone_text = match.group(8)
    try:
        moment = datetime(year, month, day, hour, minute, second, tzinfo=_parse_zone(zone_text))
    except ValueError as error:
        raise SnapshotFormatError(f"invalid timestamp '{text}': {error}") from None
    seconds = (moment - _EPOCH) // timedelta(seconds=1)
    fraction = int(fraction_text.ljust(9, "0")) if fraction_text else 0
    return seconds * _NS_PER_SECOND + fraction


def _parse_zone(zone_text: str) -> timezone:
    if zone_text == "Z":
        return UTC
    sign = -1 if zone_text[0] == "-" else 1
    hours, minutes = int(zone_text[1:3]), int(zone_text[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset '{zone_text}' out of range")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def encode_status(flags: StatusFlag) -> str:
    """Render the three-character status prefix."""
    return "".join(code if flags & flag else CODE_MISSING for flag, code in _PREFIX_CODES)


def decode_status(prefix: str) -> StatusFlag:
    """Parse a three-character status prefix back into flags."""
    if len(prefix) != PREFIX_SIZE:
        raise SnapshotFormatError(f"status prefix '{prefix}' must be {PREFIX_SIZE} characters")
    flags = StatusFlag.NONE
    for char, (flag, code) in zip(prefix, _PREFIX_CODES, strict=True):
        if char == code:
            flags |= flag
        elif char != CODE_MISSING:
            raise SnapshotFormatError(f"status prefix '{prefix}' has invalid code '{char}'")
    return flags


def is_storable_path(path: str) -> bool:
    """Return False when path holds a character that would split its line."""
    return not any(char in path for char in _FORBIDDEN_PATH_CHARS)


def encode_record(record: FileRecord) -> str:
    """Build one newline-terminated snapshot line."""
    if not is_storable_path(record.path):
        raise SnapshotFormatError(f"path '{record.path!r}' cannot be stored in a snapshot line")
    if not 0 <= record.content_hash <= MAX_HASH:
        raise SnapshotFormatError(f"hash {record.content_hash} is not an unsigned 64-bit value")
    fields = (
        record.path,
        format_timestamp(record.created_ns),
        format_timestamp(record.accessed_ns),
        format_timestamp(record.modified_ns),
        str(record.size),
        str(record.content_hash),
    )
    return f"{encode_status(record.flags)}{PREFIX_SEP}{FIELD_SEP.join(fields)}\n"


def decode_record(line: str) -> FileRecord:
    """Parse one snapshot line; flags come from the prefix only."""
    line = line.rstrip("\r\n")
    if len(line) <= PREFIX_SIZE or line[PREFIX_SIZE] != PREFIX_SEP:
        raise SnapshotFormatError(f"the line '{line}' has no status prefix")
    flags = decode_status(line[:PREFIX_SIZE])
    parts = line[PREFIX_SIZE + 1 :].split(FIELD_SEP)
    if len(parts) != FIELD_COUNT:
        raise SnapshotFormatError(
            f"the line '{line}' has {len(parts)} fields, expected {FIELD_COUNT}"
        )
    path, created, accessed, modified, size_text, hash_text = parts
    if not path:
        raise SnapshotFormatError(f"the line '{line}' has an empty path")
    size = _parse_unsigned(size_text, "size")
    content_hash = _parse_unsigned(hash_text, "hash")
    if content_hash > MAX_HASH:
        raise SnapshotFormatError(f"hash '{hash_text}' exceeds 64 bits")
    return FileRecord(
        path=path,
        size=size,
        content_hash=content_hash,
        created_ns=parse_timestamp(created),
        accessed_ns=parse_timestamp(accessed),
        modified_ns=parse_timestamp(modified),
        flags=flags,
    )


def _parse_unsigned(text: str, field: str) -> int:
    if not _DECIMAL_PATTERN.fullmatch(text):
        raise SnapshotFormatError(f"{field} '{text}' is not an unsigned decimal integer")
    return int(text)


def encode_snapshot(records: Iterable[FileRecord]) -> bytes:
    """Serialize records sorted by snapshot key."""
    ordered = sorted(records, key=lambda item: (item.key, item.path))
    text = "".join(encode_record(record) for record in ordered)
    return text.encode("utf-8", errors="surrogateescape")


def decode_snapshot(data: bytes) -> Snapshot:
    """Parse a full snapshot; the first bad or repeated line aborts the load."""
    text = data.decode("utf-8", errors="surrogateescape")
    snapshot: Snapshot = {}
    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            record = decode_record(line)
        except SnapshotFormatError as error:
            raise SnapshotFormatError(str(error), line_number=line_number) from None
        if record.key in snapshot:
            raise SnapshotFormatError(
                f"duplicate entry for '{record.path}'", line_number=line_number
            )
        snapshot[record.key] = record
    return snapshot


def clear_flags(snapshot: Snapshot) -> Snapshot:
    """Drop persisted findings so records can serve as a comparison baseline."""
    return {key: replace(record, flags=StatusFlag.NONE) for key, record in snapshot.items()}
