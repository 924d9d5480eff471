"""Source formatters run over generated files"""

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import ExternalProcessError

logger = logging.getLogger(__name__)


class SourceFormatter:
    """Runs `command + [path]`; any failure is fatal"""

    def __init__(self, command: Sequence[str]):
        self.command = list(command)

    @property
    def name(self) -> str:
        return " ".join(self.command)

    def format(self, path: Path) -> None:
        cmd = self.command + [str(path)]
        logger.info("formatting %s with %s", path, self.name)
        try:
            completed = subprocess.run(cmd)
        except OSError as e:
            raise ExternalProcessError(self.name, None, f"failed to format {path}: {e}") from e
        if completed.returncode != 0:
            raise ExternalProcessError(self.name, completed.returncode, f"failed to format {path}")


def rustfmt() -> SourceFormatter:
    return SourceFormatter(["rustfmt"])


def forge_fmt() -> SourceFormatter:
    return SourceFormatter(["forge", "fmt"])
