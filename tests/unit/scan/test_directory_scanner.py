from __future__ import annotations

from pathlib import Path

import pytest

from filecrc.scan import (
    DirectoryScanner,
    ExcludeRules,
    Fingerprinter,
    FingerprintError,
)
from filecrc.snapshot import FileRecord


def _tree(root: Path) -> None:
    (root / "logs").mkdir()
    (root / "keep").mkdir()
    (root / "keep" / "a.txt").write_text("a", encoding="utf-8")
    (root / "keep" / "b.tmp").write_text("b", encoding="utf-8")
    (root / "logs" / "c.txt").write_text("c", encoding="utf-8")
    (root / "filesinfo.zip").write_bytes(b"not scanned")


class FailingFingerprinter:
    def fingerprint(self, path: Path) -> FileRecord:
        raise FingerprintError(path, PermissionError(13, "Permission denied"))


def test_scan_fingerprints_included_files_and_reports_skips(tmp_path: Path) -> None:
    _tree(tmp_path)
    events: list[tuple[str, str]] = []
    records: list[FileRecord] = []
    scanner = DirectoryScanner(
        excludes=ExcludeRules.from_patterns(["logs", "*.tmp"]),
        fingerprinter=Fingerprinter(hash_content=False),
        observer=lambda event, path: events.append((event, path.name)),
        ignored_paths=[tmp_path / "filesinfo.zip"],
    )

    scanner.scan([tmp_path], records.append)

    assert [Path(record.path).name for record in records] == ["a.txt"]
    assert ("directory_skipped", "logs") in events
    assert ("file_skipped", "b.tmp") in events


def test_list_entries_marks_excluded_entries_without_descending(tmp_path: Path) -> None:
    _tree(tmp_path)
    scanner = DirectoryScanner(excludes=ExcludeRules.from_patterns(["logs"]))

    listings = scanner.list_entries([tmp_path])

    by_name = {listing.entry.name: listing.excluded for listing in listings}
    assert by_name["logs"] is True
    assert by_name["a.txt"] is False
    assert "c.txt" not in by_name


def test_fingerprint_failure_aborts_the_scan(tmp_path: Path) -> None:
    _tree(tmp_path)
    scanner = DirectoryScanner(fingerprinter=FailingFingerprinter())  # type: ignore[arg-type]
    records: list[FileRecord] = []

    with pytest.raises(FingerprintError):
        scanner.scan([tmp_path], records.append)

    assert records == []
