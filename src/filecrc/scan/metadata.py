"""Uniform access to file size and created/accessed/modified timestamps."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(slots=True, frozen=True)
class FileTimes:
    """Size and timestamps for one file, in epoch nanoseconds."""

    size: int
    created_ns: int
    accessed_ns: int
    modified_ns: int


class FileMetadataProvider(Protocol):
    """Capability for reading file metadata on the current platform."""

    def read(self, path: Path) -> FileTimes: ...


class StatMetadataProvider:
    """Reads metadata from os.stat, using birth time where the OS exposes it."""

    def read(self, path: Path) -> FileTimes:
        stat = os.stat(path)
        return FileTimes(
            size=stat.st_size,
            created_ns=creation_time_ns(stat),
            accessed_ns=stat.st_atime_ns,
            modified_ns=stat.st_mtime_ns,
        )


def creation_time_ns(stat: os.stat_result) -> int:
    """Return the creation time, or the earlier of modified and accessed when unavailable."""
    birth_ns = getattr(stat, "st_birthtime_ns", None)
    if isinstance(birth_ns, int):
        return birth_ns
    birth = getattr(stat, "st_birthtime", None)
    if isinstance(birth, (int, float)):
        return int(birth * 1_000_000_000)
    if os.name == "nt":
        # st_ctime is the creation time on Windows before st_birthtime existed.
        return stat.st_ctime_ns
    return min(stat.st_mtime_ns, stat.st_atime_ns)
