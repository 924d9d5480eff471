"""
GROTH16 BOOTSTRAP PIPELINE
==========================

Turns a fixed guest execution into a Groth16 receipt:

1. Execute   - run the guest with BusyLoop { cycles: 0 }; exactly one segment
2. Prove     - segment receipt for that segment
3. Lift      - succinct receipt, integrity checked immediately
4. Identity  - identity_p254 receipt; its seal is the prover witness
5. Witness   - seal.r0 + input.json in the work dir
6. Prove     - external Groth16 prover over the work dir
7. Decode    - output.json -> a, b, c byte groups
8. Assemble  - Groth16 receipt with the succinct claim and session journal

Stages run strictly in order. Any failure aborts the run; nothing is
retried.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .config import ENV_WORK_DIR
from .digest import Digest
from .errors import ExternalProcessError, ProofError
from .groth16_prover import Groth16Prover
from .receipt import Groth16Receipt, Receipt
from .witness import read_prover_output, write_witness
from .zkvm import BusyLoopSpec, ZkVm

logger = logging.getLogger(__name__)

# BusyLoop { cycles: 0 } fits in a single segment under the default
# segment size. More segments means the engine's segmentation changed.
EXPECTED_SEGMENTS = 1


class ProofBootstrapPipeline:
    """Produces a Groth16 receipt for the fixed test guest"""

    def __init__(self, zkvm: ZkVm, prover: Groth16Prover,
                 work_dir: Optional[Path] = None,
                 guest_input: Optional[BusyLoopSpec] = None):
        self.zkvm = zkvm
        self.prover = prover
        self.work_dir = Path(work_dir) if work_dir is not None else None
        self.guest_input = guest_input or BusyLoopSpec(cycles=0)

    @contextmanager
    def _work_dir(self) -> Iterator[Path]:
        work_dir = self.work_dir
        if work_dir is None and os.environ.get(ENV_WORK_DIR):
            work_dir = Path(os.environ[ENV_WORK_DIR])
        if work_dir is not None:
            work_dir.mkdir(parents=True, exist_ok=True)
            yield work_dir
            return
        with tempfile.TemporaryDirectory(prefix="groth16-bootstrap-") as tmp:
            yield Path(tmp)

    def generate_receipt(self) -> Tuple[Receipt, Digest]:
        """Return a Groth16 receipt and the image id used to generate it"""
        with self._work_dir() as work_dir:
            return self._generate(work_dir)

    def _generate(self, work_dir: Path) -> Tuple[Receipt, Digest]:
        logger.info("execute")
        session = self.zkvm.execute(self.guest_input.encode())
        if len(session.segments) != EXPECTED_SEGMENTS:
            raise ProofError(
                f"expected {EXPECTED_SEGMENTS} segment, execution produced {len(session.segments)}"
            )

        logger.info("prove")
        segment_receipt = self.zkvm.prove_segment(session.segments[0])

        logger.info("lift")
        lift_receipt = self.zkvm.lift(segment_receipt)
        lift_receipt.verify_integrity()

        logger.info("identity_p254")
        ident_receipt = self.zkvm.identity_p254(lift_receipt)
        seal_bytes = ident_receipt.seal_bytes()

        logger.info("seal-to-json")
        write_witness(seal_bytes, work_dir)

        logger.info("groth16-prover (%s)", self.prover.name)
        status = self.prover.run(work_dir)
        if status != 0:
            raise ExternalProcessError(self.prover.name, status)

        groth16_seal = read_prover_output(work_dir)

        logger.info("Groth16Seal")
        receipt = Receipt(
            inner=Groth16Receipt(seal=groth16_seal.to_bytes(), claim=lift_receipt.claim),
            journal=session.journal,
        )
        return receipt, self.zkvm.image_id
