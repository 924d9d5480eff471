"""
Bootstrap configuration.

Paths are relative to the repository root that holds both verifier
implementations. Environment variables mirror the ones the build
system already passes around, so the tool can run inside a build.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from .errors import ConfigError

# Verifier sources
SOLIDITY_GROTH16_VERIFIER_PATH = "bonsai/ethereum/contracts/groth16/Groth16Verifier.sol"
SOLIDITY_CONTROL_ID_PATH = "bonsai/ethereum/contracts/groth16/ControlID.sol"
SOLIDITY_TEST_RECEIPT_PATH = "bonsai/ethereum/contracts/test/TestReceipt.sol"
RUST_GROTH16_VERIFIER_PATH = "risc0/zkvm/src/host/groth16.rs"

# Recursion circuit artifact
RECURSION_ZKR_FILENAME = "recursion_zkr.zip"
RECURSION_ZKR_SRC_PATH = "src/recursion_zkr.zip"
RECURSION_ZKR_SHA256 = "ae5736a42189aec2f04936c3aee4b5441e48b26b4fa1fae28657cf50cdf3cae4"
ARTIFACT_URL_BASE = "https://risc0-artifacts.s3.us-west-2.amazonaws.com/zkr"

# Environment
ENV_WORK_DIR = "RISC0_WORK_DIR"
ENV_DOCS_BUILD = "DOCS_RS"
ENV_SRC_PATH = "RECURSION_SRC_PATH"
ENV_OUT_DIR = "OUT_DIR"

# (feature flag, kernel path variable, exported variable)
KERNEL_PASSTHROUGH = (
    ("CARGO_FEATURE_CUDA", "DEP_RISC0_CIRCUIT_RECURSION_SYS_CUDA_KERNEL", "RECURSION_CUDA_PATH"),
    ("CARGO_FEATURE_METAL", "DEP_RISC0_CIRCUIT_RECURSION_SYS_METAL_KERNEL", "RECURSION_METAL_PATH"),
)


@dataclass
class BootstrapConfig:
    """Locations of the verifier sources and the pipeline work dir"""
    root: Path = field(default_factory=Path.cwd)
    solidity_verifier: str = SOLIDITY_GROTH16_VERIFIER_PATH
    solidity_control_id: str = SOLIDITY_CONTROL_ID_PATH
    solidity_test_receipt: str = SOLIDITY_TEST_RECEIPT_PATH
    rust_verifier: str = RUST_GROTH16_VERIFIER_PATH
    work_dir: Optional[Path] = None     # None -> temporary directory per run
    control_root: Optional[str] = None  # hex; None -> taken from the zkVM

    def path(self, relative: str) -> Path:
        return Path(self.root) / relative

    @classmethod
    def from_env(cls, root: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None) -> 'BootstrapConfig':
        environ = os.environ if environ is None else environ
        work_dir = environ.get(ENV_WORK_DIR)
        return cls(
            root=Path(root) if root is not None else Path.cwd(),
            work_dir=Path(work_dir) if work_dir else None,
        )


@dataclass
class ArtifactSettings:
    """Where the recursion artifact comes from and where it is cached"""
    filename: str = RECURSION_ZKR_FILENAME
    sha256: str = RECURSION_ZKR_SHA256
    url_base: str = ARTIFACT_URL_BASE
    src_path: Path = Path(RECURSION_ZKR_SRC_PATH)
    out_dir: Optional[Path] = None
    docs_build: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ArtifactSettings':
        environ = os.environ if environ is None else environ
        out_dir = environ.get(ENV_OUT_DIR)
        return cls(
            src_path=Path(environ.get(ENV_SRC_PATH) or RECURSION_ZKR_SRC_PATH),
            out_dir=Path(out_dir) if out_dir else None,
            docs_build=ENV_DOCS_BUILD in environ,
        )


def kernel_paths(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Resolve GPU kernel paths for the enabled accelerator features.

    Returns the variables to export to the compiled crate, e.g.
    {"RECURSION_CUDA_PATH": "/path/to/kernel"}.
    """
    environ = os.environ if environ is None else environ
    exported = {}
    for feature, kernel_var, export_var in KERNEL_PASSTHROUGH:
        if feature not in environ:
            continue
        kernel = environ.get(kernel_var)
        if not kernel:
            raise ConfigError(f"{feature} is defined, but {kernel_var} is not")
        exported[export_var] = kernel
    return exported
