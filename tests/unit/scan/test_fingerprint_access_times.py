from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from filecrc.scan import FileTimes, Fingerprinter, FingerprintError, checksum
from filecrc.scan.metadata import creation_time_ns
from filecrc.snapshot import StatusFlag

ACCESSED_NS = 1_600_000_000_123_456_789
MODIFIED_NS = 1_500_000_000_000_000_000


class FixedMetadata:
    def __init__(self, times: FileTimes) -> None:
        self.times = times
        self.calls: list[Path] = []

    def read(self, path: Path) -> FileTimes:
        self.calls.append(path)
        return self.times


def test_fingerprint_hashes_content_and_restores_access_time(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"123456789")
    os.utime(path, ns=(ACCESSED_NS, MODIFIED_NS))

    record = Fingerprinter().fingerprint(path)

    assert record.content_hash == 0x995DC9BBDF1939FA
    assert record.size == 9
    assert record.accessed_ns == ACCESSED_NS
    assert record.modified_ns == MODIFIED_NS
    assert record.flags == StatusFlag.NONE
    stat = os.stat(path)
    assert stat.st_atime_ns == ACCESSED_NS
    assert stat.st_mtime_ns == MODIFIED_NS


def test_fingerprint_without_hashing_never_reads_content(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"content")

    with patch("filecrc.scan.fingerprint.crc64_file") as crc64_file:
        record = Fingerprinter(hash_content=False).fingerprint(path)

    crc64_file.assert_not_called()
    assert record.content_hash == 0
    assert record.size == len(b"content")


def test_fingerprint_uses_the_metadata_provider_and_normalizes_paths(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"abc")
    metadata = FixedMetadata(
        FileTimes(size=3, created_ns=10, accessed_ns=30, modified_ns=20)
    )

    record = Fingerprinter(metadata=metadata).fingerprint(path)

    assert metadata.calls == [path]
    assert (record.created_ns, record.accessed_ns, record.modified_ns) == (10, 30, 20)
    assert record.content_hash == checksum(b"abc")
    assert "\\" not in record.path
    assert os.stat(path).st_atime_ns == 30


def test_fingerprint_errors_carry_the_path(tmp_path: Path) -> None:
    missing = tmp_path / "missing.txt"

    with pytest.raises(FingerprintError) as excinfo:
        Fingerprinter().fingerprint(missing)

    assert isinstance(excinfo.value, OSError)
    assert excinfo.value.path == missing
    assert "missing.txt" in str(excinfo.value)


def test_read_failure_during_hashing_is_a_fingerprint_error(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"abc")

    with patch(
        "filecrc.scan.fingerprint.crc64_file", side_effect=PermissionError(13, "Permission denied")
    ):
        with pytest.raises(FingerprintError, match="Permission denied"):
            Fingerprinter().fingerprint(path)


@pytest.mark.parametrize("name", ["a|b.txt", "a\nb.txt"])
def test_unstorable_name_fails_before_the_file_is_read(tmp_path: Path, name: str) -> None:
    metadata = FixedMetadata(FileTimes(size=1, created_ns=1, accessed_ns=1, modified_ns=1))
    path = tmp_path / name

    with patch("filecrc.scan.fingerprint.crc64_file") as crc64_file:
        with pytest.raises(FingerprintError, match="cannot be stored") as excinfo:
            Fingerprinter(metadata=metadata).fingerprint(path)

    assert excinfo.value.path == path
    assert metadata.calls == []
    crc64_file.assert_not_called()


def test_creation_time_prefers_birth_time_then_earliest_known_time(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(os, "name", "posix")

    with_birth = SimpleNamespace(st_birthtime_ns=5, st_mtime_ns=20, st_atime_ns=10)
    without_birth = SimpleNamespace(st_mtime_ns=20, st_atime_ns=10, st_ctime_ns=99)

    assert creation_time_ns(with_birth) == 5  # type: ignore[arg-type]
    assert creation_time_ns(without_birth) == 10  # type: ignore[arg-type]
