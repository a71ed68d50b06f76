from __future__ import annotations

from pathlib import Path

from filecrc.retention import next_available_name


def test_free_name_is_used_as_is(tmp_path: Path) -> None:
    assert next_available_name(tmp_path / "filesinfo.zip") == tmp_path / "filesinfo.zip"


def test_existing_name_gets_the_next_number_after_the_highest(tmp_path: Path) -> None:
    for name in ("filesinfo.zip", "filesinfo1.zip", "filesinfo3.zip"):
        (tmp_path / name).write_bytes(b"x")

    assert next_available_name(tmp_path / "filesinfo.zip") == tmp_path / "filesinfo4.zip"


def test_existing_name_is_detected_case_insensitively(tmp_path: Path) -> None:
    (tmp_path / "FILESINFO.ZIP").write_bytes(b"x")

    assert next_available_name(tmp_path / "filesinfo.zip") == tmp_path / "filesinfo1.zip"


def test_temp_names_are_always_numbered(tmp_path: Path) -> None:
    assert next_available_name(tmp_path / "filesinfo.zip", temp=True) == (
        tmp_path / "filesinfo-Tmp1.zip"
    )
    (tmp_path / "filesinfo-Tmp1.zip").write_bytes(b"x")
    assert next_available_name(tmp_path / "filesinfo.zip", temp=True) == (
        tmp_path / "filesinfo-Tmp2.zip"
    )


def test_names_without_suffix_are_numbered_at_the_end(tmp_path: Path) -> None:
    (tmp_path / "snapshot").write_bytes(b"x")

    assert next_available_name(tmp_path / "snapshot") == tmp_path / "snapshot1"


def test_missing_directory_yields_the_desired_name(tmp_path: Path) -> None:
    desired = tmp_path / "absent" / "filesinfo.zip"

    assert next_available_name(desired) == desired
