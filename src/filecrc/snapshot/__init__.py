"""Snapshot model, line codec and archive persistence."""

from .archive import DEFAULT_ENTRY_NAME, ArchiveError, read_archive, write_archive
from .codec import (
    SnapshotFormatError,
    clear_flags,
    decode_record,
    decode_snapshot,
    encode_record,
    encode_snapshot,
    format_timestamp,
    is_storable_path,
    parse_timestamp,
)
from .models import FileRecord, Snapshot, StatusFlag, normalize_path, snapshot_key
from .store import load_prior_snapshot, load_snapshot, save_snapshot

__all__ = [
    "ArchiveError",
    "DEFAULT_ENTRY_NAME",
    "FileRecord",
    "Snapshot",
    "SnapshotFormatError",
    "StatusFlag",
    "clear_flags",
    "decode_record",
    "decode_snapshot",
    "encode_record",
    "encode_snapshot",
    "format_timestamp",
    "is_storable_path",
    "load_prior_snapshot",
    "load_snapshot",
    "normalize_path",
    "parse_timestamp",
    "read_archive",
    "save_snapshot",
    "snapshot_key",
    "write_archive",
]
