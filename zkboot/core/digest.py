"""
SHA-256 digests as used by receipts, image identifiers and artifacts.

A digest is always 32 bytes. Solidity splits it into two big-endian
halves, see split_digest().
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

DIGEST_BYTES = 32


@dataclass(frozen=True)
class Digest:
    """Fixed-size SHA-256 digest"""

    data: bytes

    def __post_init__(self):
        if len(self.data) != DIGEST_BYTES:
            raise ValueError(
                f"digest must be {DIGEST_BYTES} bytes, got {len(self.data)}"
            )

    @classmethod
    def of(cls, *parts: bytes) -> 'Digest':
        """Hash the concatenation of `parts`"""
        h = hashlib.sha256()
        for part in parts:
            h.update(part)
        return cls(h.digest())

    @classmethod
    def from_hex(cls, value: str) -> 'Digest':
        value = value.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        return cls(bytes.fromhex(value))

    @classmethod
    def zero(cls) -> 'Digest':
        return cls(bytes(DIGEST_BYTES))

    def hex(self) -> str:
        return self.data.hex()

    def as_bytes(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.hex()


def file_digest(path: Union[str, Path], chunk_size: int = 1024 * 1024) -> Digest:
    """Stream a file through SHA-256"""
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            h.update(chunk)
    return Digest(h.digest())


def split_digest(digest: Digest) -> Tuple[str, str]:
    """
    Split a digest into two halves of its big-endian form.

    The bytes are reversed first, then cut in the middle; each half is
    rendered as a 0x-prefixed hex integer of fixed width.
    """
    big_endian = digest.as_bytes()[::-1]
    middle = len(big_endian) // 2
    return (
        "0x" + big_endian[:middle].hex(),
        "0x" + big_endian[middle:].hex(),
    )


def join_digest(high: str, low: str) -> Digest:
    """Inverse of split_digest"""
    halves = []
    for half in (high, low):
        if half.startswith(("0x", "0X")):
            half = half[2:]
        halves.append(bytes.fromhex(half))
    if len(halves[0]) != len(halves[1]):
        raise ValueError("digest halves must have equal length")
    return Digest((halves[0] + halves[1])[::-1])
