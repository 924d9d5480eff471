#!/usr/bin/env python3
"""
ZKBOOT CORE MODULE
==================
Groth16 bootstrap and verifier synchronization

This module provides the unified interface to the bootstrap tool:

- ArtifactCache for the content-addressed recursion circuit
- ProofBootstrapPipeline: execute -> prove -> lift -> identity_p254
  -> external Groth16 prover -> Groth16 receipt
- Verifying key synchronization between the Solidity and Rust verifiers
- Golden test vectors (ControlID.sol, TestReceipt.sol)
"""

from .artifact_cache import Artifact, ArtifactCache
from .config import ArtifactSettings, BootstrapConfig, kernel_paths
from .digest import Digest, file_digest, join_digest, split_digest
from .errors import (
    AvailabilityError,
    BootstrapError,
    ConfigError,
    DecodeError,
    ExternalProcessError,
    IntegrityError,
    ProofError,
    SyncError,
)
from .formatter import SourceFormatter, forge_fmt, rustfmt
from .golden_vectors import (
    bootstrap_control_id,
    bootstrap_test_receipt,
    emit_control_id,
    emit_test_receipt,
)
from .groth16_prover import DockerGroth16Prover, Groth16Prover
from .pipeline import ProofBootstrapPipeline
from .receipt import (
    Claim,
    Groth16Receipt,
    Groth16Seal,
    IdentityReceipt,
    Journal,
    Receipt,
    Segment,
    SegmentReceipt,
    Session,
    SuccinctReceipt,
    SystemState,
)
from .verifier_sync import (
    RUST,
    SOLIDITY,
    VERIFYING_KEY_CONSTANTS,
    SyncResult,
    sync_constants,
    sync_verifying_key,
    synchronize,
)
from .zkvm import BusyLoopSpec, DevModeZkVm, ZkVm

__all__ = [
    # Artifacts
    "Artifact",
    "ArtifactCache",
    "ArtifactSettings",
    "kernel_paths",

    # Digests
    "Digest",
    "file_digest",
    "split_digest",
    "join_digest",

    # Pipeline
    "BootstrapConfig",
    "ProofBootstrapPipeline",
    "ZkVm",
    "DevModeZkVm",
    "BusyLoopSpec",
    "Groth16Prover",
    "DockerGroth16Prover",

    # Receipts
    "Claim",
    "Groth16Receipt",
    "Groth16Seal",
    "IdentityReceipt",
    "Journal",
    "Receipt",
    "Segment",
    "SegmentReceipt",
    "Session",
    "SuccinctReceipt",
    "SystemState",

    # Code generation
    "SourceFormatter",
    "rustfmt",
    "forge_fmt",
    "VERIFYING_KEY_CONSTANTS",
    "SOLIDITY",
    "RUST",
    "SyncResult",
    "synchronize",
    "sync_constants",
    "sync_verifying_key",
    "emit_control_id",
    "emit_test_receipt",
    "bootstrap_control_id",
    "bootstrap_test_receipt",

    # Errors
    "BootstrapError",
    "IntegrityError",
    "AvailabilityError",
    "ProofError",
    "ExternalProcessError",
    "DecodeError",
    "SyncError",
    "ConfigError",
]
