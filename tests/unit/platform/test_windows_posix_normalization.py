from __future__ import annotations

from filecrc.report import select_records
from filecrc.snapshot import FileRecord, decode_record, encode_record, normalize_path, snapshot_key


def _record(path: str) -> FileRecord:
    return FileRecord(path=path, size=1, content_hash=2, created_ns=0, accessed_ns=0, modified_ns=0)


def test_windows_and_posix_paths_share_one_snapshot_key() -> None:
    assert normalize_path(r"C:\Data\Report.TXT") == "C:/Data/Report.TXT"
    assert snapshot_key(r"C:\Data\Report.TXT") == snapshot_key("c:/data/report.txt")


def test_backslash_paths_survive_a_line_round_trip_with_their_case() -> None:
    record = _record(r"D:\Share\Mixed Case.doc")

    decoded = decode_record(encode_record(record))

    assert decoded.path == r"D:\Share\Mixed Case.doc"
    assert decoded.key == "d:/share/mixed case.doc"


def test_name_search_splits_backslash_paths_into_components() -> None:
    records = [_record(r"D:\Share\logs\a.txt"), _record("/srv/share/b.txt")]

    selected = select_records(records, name_pattern="^logs$")

    assert [record.path for record in selected] == [r"D:\Share\logs\a.txt"]
