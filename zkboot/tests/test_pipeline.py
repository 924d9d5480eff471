#!/usr/bin/env python3
"""
Tests for the Groth16 bootstrap pipeline

Test Categories:
1. Witness codec - seal -> input.json, output.json -> Groth16Seal
2. Pipeline - stage ordering, assembly and determinism
3. Failures - segment count, lift integrity, prover exit, decode errors
4. Work directory handling
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from zkboot.core.config import ENV_WORK_DIR
from zkboot.core.errors import (
    AvailabilityError, DecodeError, ExternalProcessError, ProofError,
)
from zkboot.core.pipeline import ProofBootstrapPipeline
from zkboot.core.receipt import (
    Groth16Receipt, Groth16Seal, Receipt, SuccinctReceipt,
)
from zkboot.core.witness import parse_prover_output, seal_to_json
from zkboot.core.zkvm import BusyLoopSpec, DevModeZkVm

from .fakes import A, B, C, FakeGroth16Prover, prover_output


class TestWitnessCodec(unittest.TestCase):
    """Test the formats exchanged with the external prover"""

    def test_seal_to_json_words(self):
        """Seal bytes become little-endian u32 words as decimal strings"""
        seal = (1).to_bytes(4, 'little') + (0xdeadbeef).to_bytes(4, 'little')
        self.assertEqual(seal_to_json(seal), {"iop": ["1", str(0xdeadbeef)]})

    def test_seal_to_json_rejects_partial_word(self):
        with self.assertRaises(DecodeError):
            seal_to_json(b'\x00' * 5)

    def test_parse_prover_output(self):
        """Three groups decode to bytes; the public signals are ignored"""
        seal = parse_prover_output(prover_output())
        self.assertEqual(len(seal.a), 2)
        self.assertEqual([len(row) for row in seal.b], [2, 2])
        self.assertEqual(len(seal.c), 2)
        self.assertEqual(seal.a[0], (1).to_bytes(32, 'big'))
        self.assertEqual(seal.b[1][0], (5).to_bytes(32, 'big'))
        self.assertEqual(seal.c[1], (8).to_bytes(32, 'big'))

    def test_parse_three_groups_only(self):
        text = ",".join(json.dumps(g) for g in (A, B, C))
        self.assertEqual(len(parse_prover_output(text).c), 2)

    def test_non_hex_in_a(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(a=["0xzz", A[1]]))
        self.assertEqual(ctx.exception.group, "a")

    def test_non_hex_in_b(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(b=[[B[0][0], "0x123"], B[1]]))
        self.assertEqual(ctx.exception.group, "b")

    def test_non_hex_in_c(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(c=[C[0], 7]))
        self.assertEqual(ctx.exception.group, "c")

    def test_spaced_hex_rejected(self):
        """Whitespace between bytes is not hex"""
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(a=["0x" + "00 " * 31 + "01", A[1]]))
        self.assertEqual(ctx.exception.group, "a")

    def test_odd_length_rejected(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(c=[C[0], "0x" + "0" * 63]))
        self.assertEqual(ctx.exception.group, "c")

    def test_b_pairs_must_have_two_elements(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(b=[[B[0][0]], [B[1][0]]]))
        self.assertEqual(ctx.exception.group, "b")

    def test_b_must_have_two_pairs(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(b=[B[0]]))
        self.assertEqual(ctx.exception.group, "b")

    def test_a_must_have_two_elements(self):
        with self.assertRaises(DecodeError) as ctx:
            parse_prover_output(prover_output(a=A + [A[0]]))
        self.assertEqual(ctx.exception.group, "a")

    def test_too_few_groups(self):
        with self.assertRaises(DecodeError):
            parse_prover_output(json.dumps(A))

    def test_not_json(self):
        with self.assertRaises(DecodeError):
            parse_prover_output("this is not a proof")

    def test_seal_layout(self):
        """to_bytes concatenates a, b (row-major), c"""
        seal = parse_prover_output(prover_output())
        flat = seal.to_bytes()
        self.assertEqual(flat, b''.join(n.to_bytes(32, 'big') for n in range(1, 9)))
        self.assertEqual(Groth16Seal.from_bytes(flat), seal)

    def test_seal_from_bytes_wrong_length(self):
        with self.assertRaises(DecodeError):
            Groth16Seal.from_bytes(b'\x00' * 100)


class BrokenLiftZkVm(DevModeZkVm):
    """Lifts into a receipt whose seal does not commit to its claim"""

    def lift(self, receipt):
        lifted = super().lift(receipt)
        return SuccinctReceipt(claim=lifted.claim, seal=b'\x00' * 32,
                               control_id=lifted.control_id)


class TestProofBootstrapPipeline(unittest.TestCase):
    """Test the end-to-end pipeline against fake collaborators"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.work_dir = Path(self._tmp.name)
        self.zkvm = DevModeZkVm()

    def tearDown(self):
        self._tmp.cleanup()

    def pipeline(self, prover=None, zkvm=None, work_dir=None):
        return ProofBootstrapPipeline(zkvm or self.zkvm, prover or FakeGroth16Prover(),
                                      work_dir=work_dir or self.work_dir)

    def test_generate_receipt(self):
        """Produces a Groth16 receipt with the succinct claim and journal"""
        receipt, image_id = self.pipeline().generate_receipt()

        self.assertIsInstance(receipt, Receipt)
        self.assertIsInstance(receipt.inner, Groth16Receipt)
        self.assertEqual(image_id, self.zkvm.image_id)

        session = self.zkvm.execute(BusyLoopSpec(cycles=0).encode())
        expected_claim = self.zkvm.prove_segment(session.segments[0]).claim
        self.assertEqual(receipt.claim, expected_claim)
        self.assertEqual(receipt.journal, session.journal)

    def test_seal_matches_prover_groups(self):
        """The receipt seal decodes back into the prover's three groups"""
        receipt, _ = self.pipeline().generate_receipt()

        seal = Groth16Seal.from_bytes(receipt.groth16().seal)

        self.assertEqual(seal, parse_prover_output(prover_output()))
        self.assertEqual((len(seal.a), len(seal.b), len(seal.c)), (len(A), len(B), len(C)))

    def test_witness_written(self):
        """seal.r0 and input.json hold the identity seal"""
        prover = FakeGroth16Prover()
        self.pipeline(prover).generate_receipt()

        witness = json.loads(prover.witnesses[0])
        seal = (self.work_dir / 'seal.r0').read_bytes()
        self.assertEqual(len(witness["iop"]), DevModeZkVm.IDENTITY_SEAL_WORDS)
        self.assertEqual(len(seal), 4 * DevModeZkVm.IDENTITY_SEAL_WORDS)
        self.assertEqual(witness, seal_to_json(seal))

    def test_determinism(self):
        """Two runs agree on journal, claim and seal"""
        first, first_id = self.pipeline().generate_receipt()
        second, second_id = self.pipeline(zkvm=DevModeZkVm()).generate_receipt()

        self.assertEqual(first.journal, second.journal)
        self.assertEqual(first.claim, second.claim)
        self.assertEqual(first.groth16().seal, second.groth16().seal)
        self.assertEqual(first_id, second_id)

    def test_multiple_segments_fail(self):
        """A segment count other than one is a configuration drift"""
        zkvm = DevModeZkVm(segment_po2=10)
        prover = FakeGroth16Prover()

        with self.assertRaises(ProofError) as ctx:
            self.pipeline(prover, zkvm=zkvm).generate_receipt()

        self.assertIn("segment", str(ctx.exception))
        self.assertEqual(prover.work_dirs, [])

    def test_lift_integrity_checked(self):
        """A malformed succinct receipt stops the pipeline before proving"""
        prover = FakeGroth16Prover()

        with self.assertRaises(ProofError):
            self.pipeline(prover, zkvm=BrokenLiftZkVm()).generate_receipt()

        self.assertEqual(prover.work_dirs, [])

    def test_prover_failure(self):
        """A non-zero exit from the prover is fatal"""
        with self.assertRaises(ExternalProcessError) as ctx:
            self.pipeline(FakeGroth16Prover(exit_code=125)).generate_receipt()

        self.assertEqual(ctx.exception.exit_code, 125)
        self.assertIn("125", str(ctx.exception))

    def test_decode_failure_names_group(self):
        prover = FakeGroth16Prover(output=prover_output(a=["0xnothex", A[1]]))

        with self.assertRaises(DecodeError) as ctx:
            self.pipeline(prover).generate_receipt()

        self.assertEqual(ctx.exception.group, "a")
        self.assertIn("'a'", str(ctx.exception))

    def test_short_b_pairs_fail_before_assembly(self):
        """A malformed b group never becomes a receipt"""
        prover = FakeGroth16Prover(output=prover_output(b=[[B[0][0]], [B[1][0]]]))

        with self.assertRaises(DecodeError) as ctx:
            self.pipeline(prover).generate_receipt()

        self.assertEqual(ctx.exception.group, "b")

    def test_missing_output(self):
        class SilentProver(FakeGroth16Prover):
            def run(self, work_dir):
                return 0

        with self.assertRaises(AvailabilityError):
            self.pipeline(SilentProver()).generate_receipt()

    def test_temporary_work_dir_removed(self):
        """Without an explicit work dir a temp dir is used and cleaned up"""
        prover = FakeGroth16Prover()
        with mock.patch.dict(os.environ):
            os.environ.pop(ENV_WORK_DIR, None)
            ProofBootstrapPipeline(self.zkvm, prover).generate_receipt()

        self.assertEqual(len(prover.work_dirs), 1)
        self.assertFalse(prover.work_dirs[0].exists())

    def test_temporary_work_dir_removed_on_failure(self):
        prover = FakeGroth16Prover(exit_code=1)
        with mock.patch.dict(os.environ):
            os.environ.pop(ENV_WORK_DIR, None)
            with self.assertRaises(ExternalProcessError):
                ProofBootstrapPipeline(self.zkvm, prover).generate_receipt()

        self.assertFalse(prover.work_dirs[0].exists())

    def test_work_dir_from_environment(self):
        """RISC0_WORK_DIR keeps the intermediate files for debugging"""
        work_dir = self.work_dir / 'debug'
        prover = FakeGroth16Prover()
        with mock.patch.dict(os.environ, {ENV_WORK_DIR: str(work_dir)}):
            ProofBootstrapPipeline(self.zkvm, prover).generate_receipt()

        self.assertEqual(prover.work_dirs, [work_dir])
        self.assertTrue((work_dir / 'input.json').exists())
        self.assertTrue((work_dir / 'output.json').exists())


class TestReceipt(unittest.TestCase):

    def test_groth16_accessor_rejects_succinct(self):
        zkvm = DevModeZkVm()
        session = zkvm.execute(BusyLoopSpec().encode())
        lifted = zkvm.lift(zkvm.prove_segment(session.segments[0]))
        receipt = Receipt(inner=lifted, journal=session.journal)

        self.assertIs(receipt.succinct(), lifted)
        with self.assertRaises(ProofError):
            receipt.groth16()

    def test_lift_verifies(self):
        zkvm = DevModeZkVm()
        session = zkvm.execute(BusyLoopSpec().encode())
        zkvm.lift(zkvm.prove_segment(session.segments[0])).verify_integrity()


if __name__ == '__main__':
    unittest.main()
