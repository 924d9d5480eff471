"""
Codecs between the pipeline and the external Groth16 prover.

Outbound: the identity seal becomes `input.json`, one decimal string
per little-endian u32 word under "iop".

Inbound: the prover writes `output.json` as a bare, comma separated
sequence of groups, `[a...], [[b...], ...], [c...], [public...]`. It is
wrapped in brackets to make a JSON array before parsing.
"""

import json
import re
import logging
from pathlib import Path
from typing import Any, List

import numpy as np

from .errors import AvailabilityError, DecodeError
from .receipt import Groth16Seal

logger = logging.getLogger(__name__)

SEAL_FILENAME = "seal.r0"
WITNESS_FILENAME = "input.json"
PROOF_FILENAME = "output.json"

_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


def seal_to_json(seal: bytes) -> dict:
    """Witness document for the Groth16 prover"""
    if len(seal) % 4:
        raise DecodeError("seal", f"seal length {len(seal)} is not a multiple of 4")
    words = np.frombuffer(seal, dtype='<u4')
    return {"iop": [str(int(w)) for w in words]}


def write_witness(seal: bytes, work_dir: Path) -> Path:
    work_dir = Path(work_dir)
    (work_dir / SEAL_FILENAME).write_bytes(seal)
    path = work_dir / WITNESS_FILENAME
    with open(path, 'w') as f:
        json.dump(seal_to_json(seal), f)
    return path


def decode_hex(token: Any, group: str) -> bytes:
    if not isinstance(token, str):
        raise DecodeError(group, f"expected a hex string, got {token!r}")
    value = token[2:] if token[:2] in ("0x", "0X") else token
    if not _HEX_RE.fullmatch(value):
        raise DecodeError(group, f"{token!r} is not an even-length hex string")
    return bytes.fromhex(value)


def _decode_list(values: Any, group: str) -> List[bytes]:
    if not isinstance(values, list):
        raise DecodeError(group, f"expected a list, got {type(values).__name__}")
    if len(values) != 2:
        raise DecodeError(group, f"expected 2 elements, got {len(values)}")
    return [decode_hex(v, group) for v in values]


def parse_prover_output(text: str) -> Groth16Seal:
    """Decode the prover's a/b/c groups into a Groth16Seal"""
    try:
        raw = json.loads(f"[{text}]")
    except json.JSONDecodeError as e:
        raise DecodeError("output", str(e)) from e
    if len(raw) < 3:
        raise DecodeError("output", f"expected at least 3 groups, got {len(raw)}")

    logger.info("decode a")
    a = _decode_list(raw[0], "a")

    logger.info("decode b")
    if not isinstance(raw[1], list) or len(raw[1]) != 2:
        raise DecodeError("b", f"expected 2 pairs, got {raw[1]!r}")
    b = [_decode_list(inner, "b") for inner in raw[1]]

    logger.info("decode c")
    c = _decode_list(raw[2], "c")

    return Groth16Seal(a=a, b=b, c=c)


def read_prover_output(work_dir: Path) -> Groth16Seal:
    path = Path(work_dir) / PROOF_FILENAME
    if not path.exists():
        raise AvailabilityError(f"groth16 prover produced no output at {path}")
    text = path.read_text()
    logger.info("%s", text)
    return parse_prover_output(text)
