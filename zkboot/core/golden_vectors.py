"""
Solidity libraries with fixed test vectors.

ControlID.sol carries the recursion control root split into two uint256
halves. TestReceipt.sol carries a complete Groth16 receipt produced by
the bootstrap pipeline. Both files are rewritten wholesale and then
formatted with forge.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .config import BootstrapConfig
from .digest import Digest, split_digest
from .errors import AvailabilityError
from .formatter import SourceFormatter, forge_fmt
from .pipeline import ProofBootstrapPipeline

logger = logging.getLogger(__name__)

SOL_HEADER = """// Copyright 2024 RISC Zero, Inc.
//
// Licensed under the Apache License, Version 2.0 (the "License");
// you may not use this file except in compliance with the License.
// You may obtain a copy of the License at
//
//     http://www.apache.org/licenses/LICENSE-2.0
//
// Unless required by applicable law or agreed to in writing, software
// distributed under the License is distributed on an "AS IS" BASIS,
// WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
// See the License for the specific language governing permissions and
// limitations under the License.
//
// SPDX-License-Identifier: Apache-2.0

// This file is automatically generated by:
// python -m zkboot.cli.bootstrap_groth16

"""

CONTROL_ID_PRAGMA = "^0.8.9"
TEST_RECEIPT_PRAGMA = "^0.8.13"


def render_library(name: str, pragma: str, constants: List[str]) -> str:
    lines = [f"pragma solidity {pragma};", "", f"library {name} {{"]
    lines.extend(f"    {c}" for c in constants)
    lines.append("}")
    return SOL_HEADER + "\n".join(lines) + "\n"


def _write(path: Path, content: str, formatter: Optional[SourceFormatter]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    except OSError as e:
        raise AvailabilityError(f"failed to write {path}: {e}") from e
    logger.info("wrote %s", path)
    (formatter or forge_fmt()).format(path)


def control_id_constants(control_root: Digest) -> List[str]:
    control_id_0, control_id_1 = split_digest(control_root)
    return [
        f"uint256 public constant CONTROL_ID_0 = {control_id_0};",
        f"uint256 public constant CONTROL_ID_1 = {control_id_1};",
    ]


def emit_control_id(control_root: Digest, path: Path,
                    formatter: Optional[SourceFormatter] = None) -> str:
    content = render_library("ControlID", CONTROL_ID_PRAGMA, control_id_constants(control_root))
    _write(Path(path), content, formatter)
    return content


def receipt_constants(seal: bytes, post_digest: Digest, journal: bytes,
                      image_id: Digest) -> List[str]:
    return [
        f'bytes public constant SEAL = hex"{seal.hex()}";',
        f"bytes32 public constant POST_DIGEST = bytes32(0x{post_digest.hex()});",
        f'bytes public constant JOURNAL = hex"{journal.hex()}";',
        f"bytes32 public constant IMAGE_ID = bytes32(0x{image_id.hex()});",
    ]


def emit_test_receipt(pipeline: ProofBootstrapPipeline, path: Path,
                      formatter: Optional[SourceFormatter] = None) -> Tuple[str, Digest]:
    """Run the pipeline and write its receipt; nothing is written on failure"""
    receipt, image_id = pipeline.generate_receipt()
    constants = receipt_constants(
        seal=receipt.groth16().seal,
        post_digest=receipt.claim.post.digest(),
        journal=receipt.journal.data,
        image_id=image_id,
    )
    content = render_library("TestReceipt", TEST_RECEIPT_PRAGMA, constants)
    _write(Path(path), content, formatter)
    return content, image_id


def bootstrap_control_id(config: BootstrapConfig, control_root: Digest,
                         formatter: Optional[SourceFormatter] = None) -> str:
    return emit_control_id(control_root, config.path(config.solidity_control_id), formatter)


def bootstrap_test_receipt(config: BootstrapConfig, pipeline: ProofBootstrapPipeline,
                           formatter: Optional[SourceFormatter] = None) -> Tuple[str, Digest]:
    return emit_test_receipt(pipeline, config.path(config.solidity_test_receipt), formatter)
