"""Single-entry zip archives with optional password encryption."""

from __future__ import annotations

import os
import zipfile
import zlib
from pathlib import Path
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

DEFAULT_ENTRY_NAME: Final = "fileinfo.txt"
ENCRYPTED_COMMENT: Final = b"filecrc-aes256"
KDF_ITERATIONS: Final = 200_000

_MAGIC: Final = b"FCRC\x01"
_SALT_BYTES: Final = 16
_NONCE_BYTES: Final = 12
_KEY_BYTES: Final = 32


class ArchiveError(OSError):
    """Raised when an archive cannot be written, found, or decrypted."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


def write_archive(
    path: Path,
    data: bytes,
    *,
    entry_name: str = DEFAULT_ENTRY_NAME,
    password: str | None = None,
) -> None:
    """Write data as the only entry of a zip archive at path."""
    if not entry_name:
        raise ArchiveError("Archive entry name must not be empty.", path)
    info = zipfile.ZipInfo(entry_name)
    info.external_attr = 0o600 << 16
    if password:
        payload = encrypt_payload(data, password)
        info.compress_type = zipfile.ZIP_STORED
        info.comment = ENCRYPTED_COMMENT
    else:
        payload = data
        info.compress_type = zipfile.ZIP_DEFLATED

    tmp = path.with_name(path.name + ".tmp")
    try:
        with zipfile.ZipFile(tmp, "w") as archive:
            archive.writestr(info, payload)
        tmp.replace(path)
    except OSError as error:
        tmp.unlink(missing_ok=True)
        raise ArchiveError(f"Cannot write archive '{path}': {error}", path) from error


def read_archive(
    path: Path,
    *,
    entry_name: str | None = None,
    password: str | None = None,
) -> bytes:
    """Return the content of the named (or first) entry of a zip archive."""
    if not path.is_file():
        raise ArchiveError(f"The archive '{path}' does not exist.", path)
    try:
        with zipfile.ZipFile(path, "r") as archive:
            info = _select_entry(archive, path, entry_name)
            payload = archive.read(info)
    except zipfile.BadZipFile as error:
        raise ArchiveError(f"The file '{path}' is not a valid archive: {error}", path) from None
    except (zlib.error, EOFError) as error:
        raise ArchiveError(f"The archive '{path}' is corrupt: {error!r}", path) from None
    except zipfile.LargeZipFile as error:
        raise ArchiveError(f"The archive '{path}' cannot be read: {error}", path) from None

    if info.comment != ENCRYPTED_COMMENT:
        return payload
    if not password:
        raise ArchiveError(
            f"The entry '{info.filename}' in '{path}' is encrypted; a password is required.",
            path,
        )
    try:
        return decrypt_payload(payload, password)
    except ValueError as error:
        raise ArchiveError(
            f"Cannot decrypt entry '{info.filename}' in '{path}': {error}", path
        ) from None


def _select_entry(
    archive: zipfile.ZipFile, path: Path, entry_name: str | None
) -> zipfile.ZipInfo:
    entries = [info for info in archive.infolist() if not info.is_dir()]
    if not entry_name:
        if not entries:
            raise ArchiveError(f"The archive '{path}' contains no entries.", path)
        return entries[0]
    for info in entries:
        if info.filename == entry_name:
            return info
    raise ArchiveError(f"The file '{entry_name}' is not in the archive '{path}'.", path)


def encrypt_payload(data: bytes, password: str) -> bytes:
    """Compress then AES-256-GCM encrypt data with a password-derived key."""
    salt = os.urandom(_SALT_BYTES)
    nonce = os.urandom(_NONCE_BYTES)
    key = derive_key(password, salt)
    ciphertext = AESGCM(key).encrypt(nonce, zlib.compress(data), _MAGIC)
    return _MAGIC + salt + nonce + ciphertext


def decrypt_payload(payload: bytes, password: str) -> bytes:
    """Reverse encrypt_payload; raises ValueError on a wrong password or corrupt data."""
    header_size = len(_MAGIC) + _SALT_BYTES + _NONCE_BYTES
    if len(payload) <= header_size or not payload.startswith(_MAGIC):
        raise ValueError("encrypted payload header is invalid")
    salt = payload[len(_MAGIC) : len(_MAGIC) + _SALT_BYTES]
    nonce = payload[len(_MAGIC) + _SALT_BYTES : header_size]
    key = derive_key(password, salt)
    try:
        compressed = AESGCM(key).decrypt(nonce, payload[header_size:], _MAGIC)
    except InvalidTag:
        raise ValueError("wrong password or tampered payload") from None
    try:
        return zlib.decompress(compressed)
    except zlib.error as error:
        raise ValueError(f"corrupt compressed payload: {error}") from None


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 256-bit key from a password with PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=_KEY_BYTES,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))
