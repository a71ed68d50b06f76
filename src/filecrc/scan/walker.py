"""Tree traversal and exclusion rules."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from filecrc.snapshot.models import normalize_path


class WalkAction(Enum):
    """Visitor answer for one entry."""

    CONTINUE = "continue"
    SKIP = "skip"


@dataclass(slots=True, frozen=True)
class WalkEntry:
    """One directory or regular file found during traversal."""

    path: Path
    is_dir: bool
    name: str


Visitor = Callable[[WalkEntry], WalkAction]
WalkErrorHandler = Callable[[Path, OSError], None]


class TreeWalker(Protocol):
    """Traversal strategy; SKIP returned for a directory prunes its subtree."""

    def walk(
        self,
        root: Path,
        visit: Visitor,
        on_error: WalkErrorHandler | None = None,
    ) -> None: ...


class ScandirWalker:
    """Depth-first os.scandir walk in name order that never follows symlinks."""

    def walk(
        self,
        root: Path,
        visit: Visitor,
        on_error: WalkErrorHandler | None = None,
    ) -> None:
        if root.is_file():
            visit(WalkEntry(path=root, is_dir=False, name=root.name))
            return
        stack: list[Path] = [root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as entries:
                    ordered = sorted(entries, key=lambda item: item.name)
            except OSError as error:
                if on_error is not None:
                    on_error(current, error)
                continue
            subdirs: list[Path] = []
            for entry in ordered:
                full_path = Path(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    action = visit(WalkEntry(path=full_path, is_dir=True, name=entry.name))
                    if action is not WalkAction.SKIP:
                        subdirs.append(full_path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                visit(WalkEntry(path=full_path, is_dir=False, name=entry.name))
            stack.extend(reversed(subdirs))


@dataclass(slots=True, frozen=True)
class ExcludeRules:
    """Case-insensitive glob patterns matched against entry names and full paths."""

    patterns: tuple[str, ...] = ()

    @classmethod
    def from_patterns(cls, patterns: tuple[str, ...] | list[str]) -> ExcludeRules:
        return cls(patterns=tuple(normalize_path(pattern).lower() for pattern in patterns))

    def matches(self, entry: WalkEntry) -> bool:
        """Return True when the entry should be skipped."""
        if not self.patterns:
            return False
        name = entry.name.lower()
        full = normalize_path(str(entry.path)).lower()
        return any(
            fnmatch.fnmatchcase(name, pattern) or fnmatch.fnmatchcase(full, pattern)
            for pattern in self.patterns
        )
