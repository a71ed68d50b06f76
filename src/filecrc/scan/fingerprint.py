"""Per-file fingerprints: size, timestamps and CRC-64 of the content."""

from __future__ import annotations

import errno
import os
from pathlib import Path

from filecrc.scan.crc64 import Crc64
from filecrc.scan.metadata import FileMetadataProvider, StatMetadataProvider
from filecrc.snapshot.codec import is_storable_path
from filecrc.snapshot.models import FileRecord, normalize_path

_READ_CHUNK_BYTES = 1024 * 1024


class FingerprintError(OSError):
    """Raised when a file cannot be stat'ed, read, or have its times restored."""

    def __init__(self, path: Path, error: OSError) -> None:
        super().__init__(f"Error processing file '{path}': {error.strerror or error}")
        self.errno = error.errno
        self.path = path


class Fingerprinter:
    """Builds FileRecords; hashing can be disabled for metadata-only passes."""

    def __init__(
        self,
        hash_content: bool = True,
        metadata: FileMetadataProvider | None = None,
    ) -> None:
        self._hash_content = hash_content
        self._metadata = metadata or StatMetadataProvider()

    @property
    def hash_content(self) -> bool:
        return self._hash_content

    def fingerprint(self, path: Path) -> FileRecord:
        """Fingerprint one file without disturbing its access time."""
        stored_path = normalize_path(str(path))
        if not is_storable_path(stored_path):
            raise FingerprintError(
                path, OSError(errno.EINVAL, "the name cannot be stored in a snapshot line")
            )
        try:
            times = self._metadata.read(path)
            content_hash = 0
            if self._hash_content:
                content_hash = crc64_file(path)
                os.utime(path, ns=(times.accessed_ns, times.modified_ns))
        except OSError as error:
            raise FingerprintError(path, error) from error
        return FileRecord(
            path=stored_path,
            size=times.size,
            content_hash=content_hash,
            created_ns=times.created_ns,
            accessed_ns=times.accessed_ns,
            modified_ns=times.modified_ns,
        )


def crc64_file(path: Path) -> int:
    """Compute CRC-64/ECMA over the full file content."""
    digest = Crc64()
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            digest.update(chunk)
    return digest.value()
