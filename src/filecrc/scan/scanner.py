"""Walk directory roots and fingerprint every included regular file."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from filecrc.scan.fingerprint import Fingerprinter
from filecrc.scan.walker import ExcludeRules, ScandirWalker, TreeWalker, WalkAction, WalkEntry
from filecrc.snapshot.models import FileRecord, snapshot_key

ScanObserver = Callable[[str, Path], None]
RecordVisitor = Callable[[FileRecord], None]


@dataclass(slots=True, frozen=True)
class EntryListing:
    """One entry seen during exclusion verification."""

    entry: WalkEntry
    excluded: bool


def _ignore_event(event: str, path: Path) -> None:
    return None


class DirectoryScanner:
    """Couples a TreeWalker, exclusion rules and a Fingerprinter."""

    def __init__(
        self,
        walker: TreeWalker | None = None,
        excludes: ExcludeRules | None = None,
        fingerprinter: Fingerprinter | None = None,
        observer: ScanObserver | None = None,
        ignored_paths: Iterable[Path] = (),
    ) -> None:
        self._walker = walker or ScandirWalker()
        self._excludes = excludes or ExcludeRules()
        self._fingerprinter = fingerprinter or Fingerprinter()
        self._observer = observer or _ignore_event
        self._ignored = frozenset(snapshot_key(str(path)) for path in ignored_paths)

    def scan(self, roots: Iterable[Path], visit_file: RecordVisitor) -> None:
        """Fingerprint every included file under roots; FingerprintError aborts."""

        def visit(entry: WalkEntry) -> WalkAction:
            if self._excludes.matches(entry):
                self._observer("directory_skipped" if entry.is_dir else "file_skipped", entry.path)
                return WalkAction.SKIP
            if entry.is_dir:
                return WalkAction.CONTINUE
            if snapshot_key(str(entry.path)) in self._ignored:
                return WalkAction.SKIP
            visit_file(self._fingerprinter.fingerprint(entry.path))
            return WalkAction.CONTINUE

        for root in roots:
            self._walker.walk(root, visit, self._on_error)

    def list_entries(self, roots: Iterable[Path]) -> list[EntryListing]:
        """Enumerate entries with their exclusion verdict, without reading content."""
        listings: list[EntryListing] = []

        def visit(entry: WalkEntry) -> WalkAction:
            excluded = self._excludes.matches(entry)
            listings.append(EntryListing(entry=entry, excluded=excluded))
            return WalkAction.SKIP if excluded else WalkAction.CONTINUE

        for root in roots:
            self._walker.walk(root, visit, self._on_error)
        return listings

    def _on_error(self, path: Path, error: OSError) -> None:
        self._observer("directory_unreadable", path)
