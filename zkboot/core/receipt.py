"""
Receipt data model.

Objects here are produced once per pipeline run and never mutated.
The proving math lives in the zkVM; these types only carry its
results between stages.
"""

import struct
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .digest import Digest
from .errors import DecodeError, ProofError

# BN254 field elements are 32 bytes
BN254_ELEMENT_BYTES = 32


@dataclass(frozen=True)
class Journal:
    """Public output committed by the guest"""
    data: bytes = b''

    def digest(self) -> Digest:
        return Digest.of(self.data)


@dataclass(frozen=True)
class Segment:
    """A bounded slice of the guest execution trace"""
    index: int
    po2: int
    insn_cycles: int
    trace_commitment: Digest


@dataclass(frozen=True)
class Session:
    segments: Tuple[Segment, ...]
    journal: Journal


@dataclass(frozen=True)
class SystemState:
    pc: int
    merkle_root: Digest

    def digest(self) -> Digest:
        return Digest.of(b'risc0.SystemState', struct.pack('<I', self.pc),
                         self.merkle_root.as_bytes())


@dataclass(frozen=True)
class Claim:
    """Commitment to a computation's start, end and exit condition"""
    pre: SystemState
    post: SystemState
    exit_code: Tuple[int, int]
    input: Digest
    output: Digest

    def digest(self) -> Digest:
        return Digest.of(
            b'risc0.ReceiptClaim',
            self.input.as_bytes(),
            self.pre.digest().as_bytes(),
            self.post.digest().as_bytes(),
            self.output.as_bytes(),
            struct.pack('<II', *self.exit_code),
        )


@dataclass(frozen=True)
class SegmentReceipt:
    segment_index: int
    claim: Claim
    seal: bytes


@dataclass(frozen=True)
class SuccinctReceipt:
    """Uniform-size receipt, independent of the original segment count"""
    claim: Claim
    seal: bytes
    control_id: Digest

    def verify_integrity(self) -> None:
        """Check that the seal commits to the claim under the control id"""
        expected = Digest.of(b'lift', self.control_id.as_bytes(),
                             self.claim.digest().as_bytes()).as_bytes()
        if self.seal[:len(expected)] != expected:
            raise ProofError("succinct receipt seal does not match its claim")


@dataclass(frozen=True)
class IdentityReceipt:
    """Succinct receipt re-expressed over the BN254 field"""
    claim: Claim
    seal: bytes

    def seal_bytes(self) -> bytes:
        return self.seal


@dataclass(frozen=True)
class Groth16Seal:
    a: List[bytes]
    b: List[List[bytes]]
    c: List[bytes]

    def to_bytes(self) -> bytes:
        out = bytearray()
        for x in self.a:
            out.extend(x)
        for row in self.b:
            for x in row:
                out.extend(x)
        for x in self.c:
            out.extend(x)
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes, element_size: int = BN254_ELEMENT_BYTES) -> 'Groth16Seal':
        """Split a flat seal into the (2, 2x2, 2) BN254 shape"""
        if len(data) != 8 * element_size:
            raise DecodeError("seal", f"expected {8 * element_size} bytes, got {len(data)}")
        e = [data[i:i + element_size] for i in range(0, len(data), element_size)]
        return cls(a=e[0:2], b=[e[2:4], e[4:6]], c=e[6:8])


@dataclass(frozen=True)
class Groth16Receipt:
    seal: bytes
    claim: Claim


@dataclass(frozen=True)
class Receipt:
    """A journal plus exactly one proof"""
    inner: Union[SuccinctReceipt, IdentityReceipt, Groth16Receipt]
    journal: Journal = field(default_factory=Journal)

    @property
    def claim(self) -> Claim:
        return self.inner.claim

    def groth16(self) -> Groth16Receipt:
        if not isinstance(self.inner, Groth16Receipt):
            raise ProofError(f"receipt is {type(self.inner).__name__}, not Groth16")
        return self.inner

    def succinct(self) -> Optional[SuccinctReceipt]:
        return self.inner if isinstance(self.inner, SuccinctReceipt) else None
