"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from filecrc.snapshot.archive import DEFAULT_ENTRY_NAME

DEFAULT_ARCHIVE_NAME = "filesinfo.zip"
DEFAULT_LOG_NAME = "filecrc.jsonl"
DEFAULT_SMTP_PORT = 587
ATTACHMENT_KINDS = ("log", "zip")

_SECTION_KEYS: dict[str, frozenset[str]] = {
    "scan": frozenset({"roots", "exclude", "hash_content"}),
    "archive": frozenset({"path", "entry", "password"}),
    "log": frozenset({"enabled", "path"}),
    "email": frozenset(
        {
            "enabled",
            "hostname",
            "server",
            "port",
            "user",
            "password",
            "from",
            "to",
            "cc",
            "attach",
        }
    ),
}


class ConfigError(ValueError):
    """Raised for invalid or missing settings; always fatal before scanning."""


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Which trees to scan and how."""

    roots: tuple[Path, ...]
    exclude: tuple[str, ...]
    hash_content: bool


@dataclass(slots=True, frozen=True)
class ArchiveConfig:
    """Where snapshots are kept."""

    path: Path
    entry: str
    password: str | None


@dataclass(slots=True, frozen=True)
class LogConfig:
    """Structured run log settings."""

    enabled: bool
    path: Path


@dataclass(slots=True, frozen=True)
class EmailConfig:
    """Run notification settings."""

    enabled: bool
    hostname: str
    server: str
    port: int
    user: str
    password: str
    sender: str
    to: tuple[str, ...]
    cc: tuple[str, ...]
    attach: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class FileCrcConfig:
    """Fully merged configuration."""

    base_dir: Path
    scan: ScanConfig
    archive: ArchiveConfig
    log: LogConfig
    email: EmailConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable view with secrets masked."""
        return {
            "base_dir": str(self.base_dir),
            "scan": {
                "roots": [str(root) for root in self.scan.roots],
                "exclude": list(self.scan.exclude),
                "hash_content": self.scan.hash_content,
            },
            "archive": {
                "path": str(self.archive.path),
                "entry": self.archive.entry,
                "encrypted": bool(self.archive.password),
            },
            "log": {
                "enabled": self.log.enabled,
                "path": str(self.log.path),
            },
            "email": {
                "enabled": self.email.enabled,
                "hostname": self.email.hostname,
                "server": self.email.server,
                "port": self.email.port,
                "user": self.email.user,
                "password_present": bool(self.email.password),
                "from": self.email.sender,
                "to": list(self.email.to),
                "cc": list(self.email.cc),
                "attach": list(self.email.attach),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    hash_content: bool | None = None
    log_path: Path | None = None
    email_enabled: bool | None = None


def default_config(base_dir: Path) -> FileCrcConfig:
    """Build the default config for paths relative to base_dir."""
    resolved = base_dir.resolve()
    return FileCrcConfig(
        base_dir=resolved,
        scan=ScanConfig(roots=(), exclude=(), hash_content=True),
        archive=ArchiveConfig(
            path=resolved / DEFAULT_ARCHIVE_NAME,
            entry=DEFAULT_ENTRY_NAME,
            password=None,
        ),
        log=LogConfig(enabled=True, path=resolved / DEFAULT_LOG_NAME),
        email=EmailConfig(
            enabled=False,
            hostname="",
            server="",
            port=DEFAULT_SMTP_PORT,
            user="",
            password="",
            sender="",
            to=(),
            cc=(),
            attach=(),
        ),
    )


def load_config_file(config_path: Path) -> dict[str, object]:
    """Load a TOML config file, or JSON when the suffix is .json."""
    if not config_path.is_file():
        raise ConfigError(f"The configuration file '{config_path}' does not exist.")
    try:
        if config_path.suffix.lower() == ".json":
            with config_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        else:
            with config_path.open("rb") as handle:
                payload = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, UnicodeDecodeError) as error:
        raise ConfigError(f"Cannot parse '{config_path}': {error}") from None
    if not isinstance(payload, dict):
        raise ConfigError(f"'{config_path}' must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a table.")
    unknown = sorted(set(value) - _SECTION_KEYS[key])
    if unknown:
        raise ConfigError(f"Config section '{key}' has unknown keys: {', '.join(unknown)}.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item:
            raise ConfigError(f"Config field '{section}.{field}' must contain non-empty strings.")
        output.append(item)
    return tuple(output)


def _string(value: object, section: str, field: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"Config field '{section}.{field}' must be a string.")
    return value


def _boolean(value: object, section: str, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Config field '{section}.{field}' must be a boolean.")
    return value


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def merge_config(
    base: FileCrcConfig, payload: dict[str, object], overrides: CliOverrides
) -> FileCrcConfig:
    """Merge defaults, the config file, then command-line overrides."""
    unknown = sorted(set(payload) - set(_SECTION_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config sections: {', '.join(unknown)}.")
    scan_payload = _get_table(payload, "scan")
    archive_payload = _get_table(payload, "archive")
    log_payload = _get_table(payload, "log")
    email_payload = _get_table(payload, "email")

    roots = base.scan.roots
    if "roots" in scan_payload:
        roots = tuple(
            _resolve(base.base_dir, item)
            for item in _tuple_of_strings(scan_payload["roots"], "scan", "roots")
        )
    exclude = base.scan.exclude
    if "exclude" in scan_payload:
        exclude = _tuple_of_strings(scan_payload["exclude"], "scan", "exclude")
    hash_content = base.scan.hash_content
    if "hash_content" in scan_payload:
        hash_content = _boolean(scan_payload["hash_content"], "scan", "hash_content")

    archive_path = base.archive.path
    if "path" in archive_payload:
        raw_path = _string(archive_payload["path"], "archive", "path")
        if not raw_path:
            raise ConfigError("Config field 'archive.path' must not be empty.")
        archive_path = _resolve(base.base_dir, raw_path)
    entry = base.archive.entry
    if "entry" in archive_payload:
        entry = _string(archive_payload["entry"], "archive", "entry")
        if not entry:
            raise ConfigError("Config field 'archive.entry' must not be empty.")
    password = base.archive.password
    if "password" in archive_payload:
        password = _string(archive_payload["password"], "archive", "password") or None

    log_enabled = base.log.enabled
    if "enabled" in log_payload:
        log_enabled = _boolean(log_payload["enabled"], "log", "enabled")
    log_path = archive_path.parent / DEFAULT_LOG_NAME
    if "path" in log_payload:
        log_path = _resolve(base.base_dir, _string(log_payload["path"], "log", "path"))

    merged = FileCrcConfig(
        base_dir=base.base_dir,
        scan=ScanConfig(roots=roots, exclude=exclude, hash_content=hash_content),
        archive=ArchiveConfig(path=archive_path, entry=entry, password=password),
        log=LogConfig(enabled=log_enabled, path=log_path),
        email=_merge_email(base.email, email_payload),
    )
    return apply_cli_overrides(merged, overrides)


def _merge_email(base: EmailConfig, payload: dict[str, object]) -> EmailConfig:
    email = base
    if "enabled" in payload:
        email = replace(email, enabled=_boolean(payload["enabled"], "email", "enabled"))
    if "hostname" in payload:
        email = replace(email, hostname=_string(payload["hostname"], "email", "hostname"))
    if "server" in payload:
        email = replace(email, server=_string(payload["server"], "email", "server"))
    if "user" in payload:
        email = replace(email, user=_string(payload["user"], "email", "user"))
    if "password" in payload:
        email = replace(email, password=_string(payload["password"], "email", "password"))
    if "from" in payload:
        email = replace(email, sender=_string(payload["from"], "email", "from"))
    if "port" in payload:
        port = payload["port"]
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigError("Config field 'email.port' must be an integer in 1..65535.")
        email = replace(email, port=port)
    if "to" in payload:
        email = replace(email, to=_tuple_of_strings(payload["to"], "email", "to"))
    if "cc" in payload:
        email = replace(email, cc=_tuple_of_strings(payload["cc"], "email", "cc"))
    if "attach" in payload:
        attach = _tuple_of_strings(payload["attach"], "email", "attach")
        invalid = sorted(set(attach) - set(ATTACHMENT_KINDS))
        if invalid:
            raise ConfigError(
                f"Config field 'email.attach' has invalid values: {', '.join(invalid)}; "
                f"expected any of {', '.join(ATTACHMENT_KINDS)}."
            )
        email = replace(email, attach=tuple(dict.fromkeys(attach)))
    return email


def apply_cli_overrides(config: FileCrcConfig, overrides: CliOverrides) -> FileCrcConfig:
    """Apply overrides at highest precedence, then validate the result."""
    merged = config
    if overrides.hash_content is not None:
        merged = replace(merged, scan=replace(merged.scan, hash_content=overrides.hash_content))
    if overrides.log_path is not None:
        merged = replace(merged, log=LogConfig(enabled=True, path=overrides.log_path.resolve()))
    if overrides.email_enabled is not None:
        merged = replace(merged, email=replace(merged.email, enabled=overrides.email_enabled))
    validate_config(merged)
    return merged


def validate_config(config: FileCrcConfig) -> None:
    """Check cross-field requirements of a merged config."""
    if not config.scan.roots:
        raise ConfigError("Config field 'scan.roots' must name at least one directory.")
    email = config.email
    if not email.enabled:
        return
    missing = [
        name
        for name, value in (
            ("server", email.server),
            ("user", email.user),
            ("password", email.password),
            ("from", email.sender),
        )
        if not value
    ]
    if not email.to:
        missing.append("to")
    if missing:
        raise ConfigError(
            f"Email is enabled but these fields are missing: "
            f"{', '.join(f'email.{name}' for name in missing)}."
        )
    if "log" in email.attach and not config.log.enabled:
        raise ConfigError("Config field 'email.attach' includes 'log' but the run log is disabled.")


def load_effective_config(
    config_path: Path, overrides: CliOverrides | None = None
) -> FileCrcConfig:
    """Load effective config using merge order defaults -> file -> overrides."""
    resolved = config_path.resolve()
    base = default_config(resolved.parent)
    payload = load_config_file(resolved)
    return merge_config(base, payload, overrides or CliOverrides())
