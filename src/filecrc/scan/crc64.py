"""CRC-64 with the ECMA-182 polynomial in reflected form (CRC-64/XZ)."""

from __future__ import annotations

from typing import Final

import crcmod

ECMA_POLYNOMIAL: Final = 0x142F0E1EBA9EA3693
_XOR_OUT: Final = 0xFFFFFFFFFFFFFFFF

_crc64_ecma = crcmod.mkCrcFun(ECMA_POLYNOMIAL, initCrc=0, rev=True, xorOut=_XOR_OUT)


def update(crc: int, data: bytes) -> int:
    """Continue a running checksum over more data."""
    return _crc64_ecma(data, crc)


def checksum(data: bytes) -> int:
    """Return the CRC-64/ECMA checksum of data."""
    return _crc64_ecma(data)


class Crc64:
    """Incremental CRC-64/ECMA digest."""

    def __init__(self, data: bytes = b"") -> None:
        self._crc = 0
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        self._crc = update(self._crc, data)

    def value(self) -> int:
        return self._crc
