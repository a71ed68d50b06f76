from __future__ import annotations

import json
from pathlib import Path

from filecrc.config import (
    DEFAULT_LOG_NAME,
    CliOverrides,
    default_config,
    load_effective_config,
)
from filecrc.snapshot import DEFAULT_ENTRY_NAME


def test_defaults_cover_archive_entry_and_log(tmp_path: Path) -> None:
    config = default_config(tmp_path)

    assert config.archive.path == tmp_path.resolve() / "filesinfo.zip"
    assert config.archive.entry == DEFAULT_ENTRY_NAME
    assert config.archive.password is None
    assert config.scan.hash_content is True
    assert config.email.enabled is False


def test_file_values_resolve_relative_to_the_config_directory(tmp_path: Path) -> None:
    config_path = tmp_path / "conf" / "filecrc.toml"
    config_path.parent.mkdir()
    config_path.write_text(
        "\n".join(
            [
                "[scan]",
                'roots = ["../data", "/srv/shared"]',
                'exclude = ["*.tmp", ".git"]',
                "",
                "[archive]",
                'path = "store/filesinfo.zip"',
                'entry = "snapshot.txt"',
                'password = "p@ss"',
            ]
        ),
        encoding="utf-8",
    )

    config = load_effective_config(config_path)

    base = config_path.parent.resolve()
    assert config.scan.roots == ((tmp_path / "data").resolve(), Path("/srv/shared").resolve())
    assert config.scan.exclude == ("*.tmp", ".git")
    assert config.archive.path == base / "store" / "filesinfo.zip"
    assert config.archive.entry == "snapshot.txt"
    assert config.archive.password == "p@ss"
    assert config.log.path == base / "store" / DEFAULT_LOG_NAME


def test_json_config_is_accepted(tmp_path: Path) -> None:
    config_path = tmp_path / "filecrc.json"
    config_path.write_text(
        json.dumps({"scan": {"roots": ["data"], "hash_content": False}}), encoding="utf-8"
    )

    config = load_effective_config(config_path)

    assert config.scan.roots == ((tmp_path / "data").resolve(),)
    assert config.scan.hash_content is False


def test_cli_overrides_take_precedence(tmp_path: Path) -> None:
    config_path = tmp_path / "filecrc.toml"
    config_path.write_text(
        "\n".join(
            [
                "[scan]",
                'roots = ["data"]',
                "",
                "[email]",
                "enabled = true",
                'server = "mail.example.net"',
                'user = "me@example.net"',
                'password = "secret"',
                'from = "me@example.net"',
                'to = ["ops@example.net"]',
            ]
        ),
        encoding="utf-8",
    )

    config = load_effective_config(
        config_path,
        CliOverrides(hash_content=False, log_path=tmp_path / "run.jsonl", email_enabled=False),
    )

    assert config.scan.hash_content is False
    assert config.log.path == (tmp_path / "run.jsonl").resolve()
    assert config.email.enabled is False
    assert config.email.server == "mail.example.net"


def test_public_dict_masks_secrets(tmp_path: Path) -> None:
    config_path = tmp_path / "filecrc.toml"
    config_path.write_text(
        '[scan]\nroots = ["data"]\n\n[archive]\npassword = "p@ss"\n', encoding="utf-8"
    )

    public = load_effective_config(config_path).to_public_dict()

    assert "p@ss" not in json.dumps(public)
    archive = public["archive"]
    assert isinstance(archive, dict)
    assert archive["encrypted"] is True
