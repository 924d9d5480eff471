"""
zkboot - Groth16 bootstrap tooling

Provisions the recursion circuit artifact, produces a Groth16 test
receipt through the external prover, and keeps the Solidity and Rust
verifiers in sync.
"""

__version__ = "0.1.0"
