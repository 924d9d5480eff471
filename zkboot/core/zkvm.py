"""
zkVM capability consumed by the bootstrap pipeline.

The real executor and prover are external; the pipeline only needs the
operations declared on `ZkVm`. `DevModeZkVm` is a deterministic stand-in
that produces self-consistent fake receipts without proving anything,
which is enough to exercise every pipeline stage and the code
generators.
"""

import logging
import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .digest import Digest
from .errors import ProofError
from .receipt import (
    Claim, IdentityReceipt, Journal, Segment, SegmentReceipt, Session,
    SuccinctReceipt, SystemState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusyLoopSpec:
    """Guest input: spin for `cycles` cycles, then halt"""
    cycles: int = 0

    # Tag of the BusyLoop variant in the multi-test guest
    TAG = 1

    def encode(self) -> bytes:
        return struct.pack('<IQ', self.TAG, self.cycles)


class ZkVm(ABC):
    """Execution engine and STARK prover, as seen by the pipeline"""

    @property
    @abstractmethod
    def image_id(self) -> Digest:
        """Image identifier of the fixed guest program"""

    @property
    @abstractmethod
    def control_root(self) -> Digest:
        """Root of the allowed recursion control ids"""

    @abstractmethod
    def execute(self, guest_input: bytes) -> Session:
        ...

    @abstractmethod
    def prove_segment(self, segment: Segment) -> SegmentReceipt:
        ...

    @abstractmethod
    def lift(self, receipt: SegmentReceipt) -> SuccinctReceipt:
        ...

    @abstractmethod
    def identity_p254(self, receipt: SuccinctReceipt) -> IdentityReceipt:
        ...


class DevModeZkVm(ZkVm):
    """
    Deterministic fake zkVM.

    Every object is derived from SHA-256 commitments over its inputs, so
    two runs with the same guest input produce identical journals, claims
    and seals.
    """

    # 2^20 cycles per segment unless told otherwise
    DEFAULT_SEGMENT_PO2 = 20
    # Fixed per-run overhead of the guest (startup + halt)
    BASE_CYCLES = 1 << 14
    # Identity seal length in u32 words
    IDENTITY_SEAL_WORDS = 64

    def __init__(self, guest_elf: bytes = b'multi_test', segment_po2: Optional[int] = None):
        self.guest_elf = guest_elf
        self.segment_po2 = segment_po2 or self.DEFAULT_SEGMENT_PO2
        self._image_id = Digest.of(b'image', guest_elf)
        self._control_root = Digest.of(b'allowed_ids_root', struct.pack('<I', self.segment_po2))

    @property
    def image_id(self) -> Digest:
        return self._image_id

    @property
    def control_root(self) -> Digest:
        return self._control_root

    def execute(self, guest_input: bytes) -> Session:
        cycles = self.BASE_CYCLES + self._requested_cycles(guest_input)
        segment_size = 1 << self.segment_po2
        count = max(1, math.ceil(cycles / segment_size))

        segments = []
        remaining = cycles
        for index in range(count):
            insn_cycles = min(remaining, segment_size)
            remaining -= insn_cycles
            segments.append(Segment(
                index=index,
                po2=self.segment_po2,
                insn_cycles=insn_cycles,
                trace_commitment=Digest.of(
                    b'segment', self._image_id.as_bytes(), guest_input,
                    struct.pack('<II', index, insn_cycles)),
            ))

        journal = Journal(Digest.of(b'journal', guest_input).as_bytes())
        session = Session(segments=tuple(segments), journal=journal)
        logger.debug("executed %d cycles in %d segment(s)", cycles, count)
        return session

    def prove_segment(self, segment: Segment) -> SegmentReceipt:
        claim = self._segment_claim(segment)
        seal = Digest.of(b'segment_seal', segment.trace_commitment.as_bytes(),
                         claim.digest().as_bytes()).as_bytes()
        return SegmentReceipt(segment_index=segment.index, claim=claim, seal=seal)

    def lift(self, receipt: SegmentReceipt) -> SuccinctReceipt:
        if len(receipt.seal) != 32:
            raise ProofError(f"segment {receipt.segment_index}: malformed seal")
        seal = Digest.of(b'lift', self._control_root.as_bytes(),
                         receipt.claim.digest().as_bytes()).as_bytes()
        return SuccinctReceipt(claim=receipt.claim, seal=seal, control_id=self._control_root)

    def identity_p254(self, receipt: SuccinctReceipt) -> IdentityReceipt:
        # Expand the lift seal into a fixed number of u32 words
        blocks = []
        counter = 0
        while len(blocks) * 8 < self.IDENTITY_SEAL_WORDS:
            blocks.append(Digest.of(b'identity_p254', receipt.seal,
                                    struct.pack('<I', counter)).as_bytes())
            counter += 1
        words = np.frombuffer(b''.join(blocks), dtype='<u4')[:self.IDENTITY_SEAL_WORDS]
        return IdentityReceipt(claim=receipt.claim, seal=words.tobytes())

    def _requested_cycles(self, guest_input: bytes) -> int:
        if len(guest_input) < 12:
            raise ProofError(f"guest input too short ({len(guest_input)} bytes)")
        tag, cycles = struct.unpack('<IQ', guest_input[:12])
        if tag != BusyLoopSpec.TAG:
            raise ProofError(f"unsupported guest input tag {tag}")
        return cycles

    def _segment_claim(self, segment: Segment) -> Claim:
        pre = SystemState(pc=0x0020_0000, merkle_root=self._image_id)
        post = SystemState(pc=0x0020_0000 + 4 * segment.insn_cycles,
                           merkle_root=Digest.of(b'post', segment.trace_commitment.as_bytes()))
        return Claim(
            pre=pre,
            post=post,
            exit_code=(0, 0),
            input=Digest.zero(),
            output=Digest.of(b'output', segment.trace_commitment.as_bytes()),
        )
