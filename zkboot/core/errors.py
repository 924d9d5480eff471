"""
Error taxonomy for the bootstrap tool.

Every failure is fatal for the current top-level operation; the only
tolerated partial outcome is a missing verifier constant, which is
reported by the synchronizer instead of raised.
"""

from typing import Optional


class BootstrapError(Exception):
    """Base class for all bootstrap failures"""


class IntegrityError(BootstrapError):
    """A file's digest does not match the expected digest"""

    def __init__(self, path, expected: str, actual: str):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"digest mismatch for {path}: expected {expected}, got {actual}"
        )


class AvailabilityError(BootstrapError):
    """A required file or network resource is missing"""


class ProofError(BootstrapError):
    """A proving, lifting or verification step failed"""


class ExternalProcessError(BootstrapError):
    """An external process (prover, formatter) failed"""

    def __init__(self, process: str, exit_code: Optional[int], detail: str = ""):
        self.process = process
        self.exit_code = exit_code
        message = f"{process} returned failure exit code: {exit_code}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class DecodeError(BootstrapError):
    """Malformed hex or structured text"""

    def __init__(self, group: str, detail: str):
        self.group = group
        super().__init__(f"Failed to decode snark '{group}' values: {detail}")


class SyncError(BootstrapError):
    """A verifier source could not be synchronized"""


class ConfigError(BootstrapError):
    """Inconsistent build configuration"""
