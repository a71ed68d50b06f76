"""Load and persist snapshots through the archive container."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from filecrc.snapshot.archive import DEFAULT_ENTRY_NAME, read_archive, write_archive
from filecrc.snapshot.codec import clear_flags, decode_snapshot, encode_snapshot
from filecrc.snapshot.models import FileRecord, Snapshot


def load_snapshot(
    path: Path,
    *,
    entry_name: str | None = None,
    password: str | None = None,
) -> Snapshot:
    """Read a snapshot with the findings it was written with."""
    data = read_archive(path, entry_name=entry_name, password=password)
    return decode_snapshot(data)


def load_prior_snapshot(
    path: Path,
    *,
    entry_name: str | None = None,
    password: str | None = None,
) -> Snapshot:
    """Read a snapshot as a comparison baseline, with its flags cleared."""
    return clear_flags(load_snapshot(path, entry_name=entry_name, password=password))


def save_snapshot(
    path: Path,
    records: Iterable[FileRecord],
    *,
    entry_name: str = DEFAULT_ENTRY_NAME,
    password: str | None = None,
) -> int:
    """Serialize records into an archive and return the payload size in bytes."""
    data = encode_snapshot(records)
    write_archive(path, data, entry_name=entry_name, password=password)
    return len(data)
