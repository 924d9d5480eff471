"""Test doubles for the external collaborators"""

import json
from pathlib import Path
from typing import List, Optional

from zkboot.core.formatter import SourceFormatter
from zkboot.core.groth16_prover import Groth16Prover
from zkboot.core.witness import PROOF_FILENAME, WITNESS_FILENAME


def element(n: int) -> str:
    """A 0x-prefixed 32-byte hex token"""
    return "0x" + n.to_bytes(32, 'big').hex()


A = [element(1), element(2)]
B = [[element(3), element(4)], [element(5), element(6)]]
C = [element(7), element(8)]
PUBLIC = [element(9), element(10), element(11), element(12)]


def prover_output(a=None, b=None, c=None, public=None) -> str:
    """Render output.json the way the prover writes it (not a JSON array)"""
    groups = [a or A, b or B, c or C, public or PUBLIC]
    return ",".join(json.dumps(g) for g in groups)


class FakeGroth16Prover(Groth16Prover):
    """Writes a canned output.json instead of running a container"""

    name = "fake-groth16-prover"

    def __init__(self, output: Optional[str] = None, exit_code: int = 0):
        self.output = prover_output() if output is None else output
        self.exit_code = exit_code
        self.work_dirs: List[Path] = []
        self.witnesses: List[str] = []

    def run(self, work_dir: Path) -> int:
        self.work_dirs.append(Path(work_dir))
        self.witnesses.append((Path(work_dir) / WITNESS_FILENAME).read_text())
        if self.exit_code == 0:
            (Path(work_dir) / PROOF_FILENAME).write_text(self.output)
        return self.exit_code


class RecordingFormatter(SourceFormatter):
    """Records formatted paths without running anything"""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__(["fake-fmt"])
        self.paths: List[Path] = []
        self.error = error

    def format(self, path: Path) -> None:
        self.paths.append(Path(path))
        if self.error is not None:
            raise self.error
