from __future__ import annotations

from pathlib import Path

import pytest

from filecrc.config import ConfigError
from filecrc.retention import RetentionError, archive_family, prune, split_name


def _touch(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).write_bytes(b"x")


def test_split_name_uses_the_last_dot() -> None:
    assert split_name("filesinfo.zip") == ("filesinfo", ".zip")
    assert split_name("archive.tar.gz") == ("archive.tar", ".gz")
    assert split_name("plain") == ("plain", "")


def test_archive_family_sorts_numerically_and_matches_literally(tmp_path: Path) -> None:
    _touch(tmp_path, "x.zip", "x10.zip", "x9.zip", "x1.zip", "xa1.zip", "x2.txt", "x-Tmp1.zip")
    (tmp_path / "x3.zip").mkdir()

    family = archive_family(tmp_path / "x.zip")

    assert [(number, path.name) for number, path in family] == [
        (1, "x1.zip"),
        (9, "x9.zip"),
        (10, "x10.zip"),
    ]


def test_prune_keeps_the_newest_generations(tmp_path: Path) -> None:
    _touch(tmp_path, "x.zip", "x1.zip", "x2.zip", "x3.zip", "x4.zip", "x5.zip")

    result = prune(tmp_path / "x.zip", 2)

    assert [path.name for path in result.deleted] == ["x1.zip", "x2.zip", "x3.zip"]
    assert [path.name for path in result.retained] == ["x4.zip", "x5.zip"]
    assert sorted(path.name for path in tmp_path.iterdir()) == ["x.zip", "x4.zip", "x5.zip"]


def test_prune_with_more_retained_than_present_deletes_nothing(tmp_path: Path) -> None:
    _touch(tmp_path, "x1.zip")

    result = prune(tmp_path / "x.zip", 3)

    assert result.deleted == []
    assert [path.name for path in result.retained] == ["x1.zip"]


def test_retain_zero_requires_force_and_force_requires_zero(tmp_path: Path) -> None:
    _touch(tmp_path, "x1.zip", "x2.zip")

    with pytest.raises(ConfigError, match="requires force"):
        prune(tmp_path / "x.zip", 0)
    with pytest.raises(ConfigError, match="retain count of zero"):
        prune(tmp_path / "x.zip", 1, force=True)
    with pytest.raises(ConfigError, match="invalid"):
        prune(tmp_path / "x.zip", -1)

    result = prune(tmp_path / "x.zip", 0, force=True)
    assert [path.name for path in result.deleted] == ["x1.zip", "x2.zip"]


def test_failed_delete_reports_the_files_left_behind(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _touch(tmp_path, "x1.zip", "x2.zip", "x3.zip", "x4.zip")
    original_unlink = Path.unlink

    def unlink(self: Path, missing_ok: bool = False) -> None:
        if self.name == "x2.zip":
            raise PermissionError(13, "Permission denied", str(self))
        original_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)

    with pytest.raises(RetentionError) as excinfo:
        prune(tmp_path / "x.zip", 1)

    assert [path.name for path in excinfo.value.remaining] == ["x2.zip", "x3.zip"]
    assert not (tmp_path / "x1.zip").exists()
    assert (tmp_path / "x2.zip").exists()
