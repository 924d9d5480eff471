"""
External Groth16 prover.

The prover is a container that reads `input.json` from /mnt and writes
`output.json` next to it. The call blocks until the container exits;
there is no timeout.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from .errors import AvailabilityError

logger = logging.getLogger(__name__)

GROTH16_PROVER_IMAGE = "risc0-groth16-prover"


class Groth16Prover(ABC):
    """Capability: prove the witness in `work_dir`, return the exit status"""

    name = "groth16-prover"

    @abstractmethod
    def run(self, work_dir: Path) -> int:
        ...


class DockerGroth16Prover(Groth16Prover):
    """Runs the prover image with the work dir mounted at /mnt"""

    name = "docker"

    def __init__(self, image: str = GROTH16_PROVER_IMAGE, docker: Optional[str] = None):
        self.image = image
        self.docker = docker

    def command(self, work_dir: Path) -> List[str]:
        docker = self.docker or shutil.which("docker")
        if not docker:
            raise AvailabilityError("docker not found. Install it or add it to PATH.")
        return [docker, "run", "--rm", "-v", f"{Path(work_dir).resolve()}:/mnt", self.image]

    def run(self, work_dir: Path) -> int:
        cmd = self.command(work_dir)
        logger.info("running %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd)
        except OSError as e:
            raise AvailabilityError(f"failed to start {cmd[0]}: {e}") from e
        return completed.returncode
