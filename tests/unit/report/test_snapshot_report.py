from __future__ import annotations

import pytest

from filecrc.config import ConfigError
from filecrc.report import describe_record, format_summary, select_records, summarize
from filecrc.snapshot import FileRecord, StatusFlag


def _record(path: str, flags: StatusFlag = StatusFlag.NONE, size: int = 10) -> FileRecord:
    return FileRecord(
        path=path,
        size=size,
        content_hash=7,
        created_ns=0,
        accessed_ns=0,
        modified_ns=0,
        flags=flags,
    )


RECORDS = [
    _record("/data/new.txt", StatusFlag.INSERTED),
    _record("/data/odd.bin", StatusFlag.SUSPICIOUS),
    _record("/data/edited.txt", StatusFlag.MISMATCHED),
    _record("/data/logs/same.txt"),
    _record("/data/logs/also.txt"),
]


def test_summarize_counts_persisted_findings() -> None:
    summary = summarize(RECORDS)

    assert (
        summary.total,
        summary.suspicious,
        summary.inserted,
        summary.modified,
        summary.unchanged,
    ) == (5, 1, 1, 1, 2)


def test_select_records_by_findings() -> None:
    assert select_records(RECORDS) == []
    assert [r.path for r in select_records(RECORDS, suspicious=True, added=True)] == [
        "/data/new.txt",
        "/data/odd.bin",
    ]
    assert [r.path for r in select_records(RECORDS, modified=True)] == ["/data/edited.txt"]


def test_name_pattern_matches_any_path_component() -> None:
    selected = select_records(RECORDS, name_pattern="^logs$")

    assert [r.path for r in selected] == ["/data/logs/same.txt", "/data/logs/also.txt"]
    assert select_records(RECORDS, name_pattern="^data/new") == []


def test_name_pattern_excludes_finding_selectors() -> None:
    with pytest.raises(ConfigError, match="mutually exclusive"):
        select_records(RECORDS, added=True, name_pattern="x")
    with pytest.raises(ConfigError, match="Invalid name pattern"):
        select_records(RECORDS, name_pattern="(")


def test_describe_record_and_summary_use_thousands_separators() -> None:
    text = describe_record(_record("/data/big.iso", StatusFlag.MISMATCHED, size=1_234_567))

    assert text.splitlines() == [
        "File name: /data/big.iso",
        "Flags: '-M-', Size: 1,234,567, CRC: 7",
        "Created: 1970-01-01T00:00:00Z, Modified: 1970-01-01T00:00:00Z, "
        "Accessed: 1970-01-01T00:00:00Z",
    ]
    assert "Total records read:      5" in format_summary(summarize(RECORDS), 0)
