"""Numbered archive naming and pruning of old archive generations."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from filecrc.config import ConfigError

TEMP_MARKER = "-Tmp"


class RetentionError(OSError):
    """Raised when pruning stops early; remaining lists the files left undeleted."""

    def __init__(self, message: str, remaining: list[Path]) -> None:
        super().__init__(message)
        self.remaining = remaining


@dataclass(slots=True, frozen=True)
class PruneResult:
    """Outcome of one prune pass, oldest first."""

    deleted: list[Path] = field(default_factory=list)
    retained: list[Path] = field(default_factory=list)


def split_name(name: str) -> tuple[str, str]:
    """Split a file name at its last dot into (base, suffix); suffix keeps the dot."""
    index = name.rfind(".")
    if index < 0:
        return name, ""
    return name[:index], name[index:]


def _numbered(directory: Path, base: str, suffix: str) -> list[tuple[int, Path]]:
    pattern = re.compile(re.escape(base) + r"([0-9]+)" + re.escape(suffix))
    members: list[tuple[int, Path]] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir():
                    continue
                match = pattern.fullmatch(entry.name)
                if match is not None:
                    members.append((int(match.group(1)), Path(entry.path)))
    except FileNotFoundError:
        return []
    members.sort(key=lambda item: (item[0], item[1].name))
    return members


def archive_family(reference: Path) -> list[tuple[int, Path]]:
    """Return rotated generations of reference as (number, path), oldest first."""
    base, suffix = split_name(reference.name)
    return _numbered(reference.parent, base, suffix)


def next_available_name(desired: Path, *, temp: bool = False) -> Path:
    """Return desired when it is free, else the next numbered sibling name."""
    directory = desired.parent
    if not temp:
        lowered = desired.name.lower()
        try:
            with os.scandir(directory) as entries:
                taken = any(
                    entry.name.lower() == lowered for entry in entries if not entry.is_dir()
                )
        except FileNotFoundError:
            taken = False
        if not taken:
            return desired
    base, suffix = split_name(desired.name)
    if temp:
        base += TEMP_MARKER
    highest = max((number for number, _ in _numbered(directory, base, suffix)), default=0)
    return directory / f"{base}{highest + 1}{suffix}"


def prune(reference: Path, retain_count: int, *, force: bool = False) -> PruneResult:
    """Delete all but the retain_count newest generations of reference."""
    if retain_count < 0:
        raise ConfigError(f"The retain count value of {retain_count} is invalid.")
    if retain_count == 0 and not force:
        raise ConfigError("A retain count of zero requires force.")
    if retain_count > 0 and force:
        raise ConfigError("Force can only be used with a retain count of zero.")

    members = [path for _, path in archive_family(reference)]
    cutoff = max(len(members) - retain_count, 0)
    doomed, retained = members[:cutoff], members[cutoff:]
    deleted: list[Path] = []
    for index, path in enumerate(doomed):
        try:
            path.unlink()
        except OSError as error:
            raise RetentionError(
                f"Error deleting '{path}': {error.strerror or error}", doomed[index:]
            ) from error
        deleted.append(path)
    return PruneResult(deleted=deleted, retained=retained)
