"""Tree walking, fingerprinting and change classification."""

from .classifier import (
    ChangeClassifier,
    ChangeKind,
    Classification,
    RunContext,
    classify_record,
    suspicion_reason,
)
from .crc64 import Crc64, checksum
from .fingerprint import Fingerprinter, FingerprintError, crc64_file
from .metadata import FileMetadataProvider, FileTimes, StatMetadataProvider
from .scanner import DirectoryScanner, EntryListing
from .walker import ExcludeRules, ScandirWalker, TreeWalker, WalkAction, WalkEntry

__all__ = [
    "ChangeClassifier",
    "ChangeKind",
    "Classification",
    "Crc64",
    "DirectoryScanner",
    "EntryListing",
    "ExcludeRules",
    "FileMetadataProvider",
    "FileTimes",
    "FingerprintError",
    "Fingerprinter",
    "RunContext",
    "ScandirWalker",
    "StatMetadataProvider",
    "TreeWalker",
    "WalkAction",
    "WalkEntry",
    "checksum",
    "classify_record",
    "crc64_file",
    "suspicion_reason",
]
