#!/usr/bin/env python3
"""
CLI tool to bootstrap the Groth16 verifiers from the command line

Runs, in order:
1. verifying key sync (Groth16Verifier.sol -> groth16.rs)
2. ControlID.sol generation
3. TestReceipt.sol generation (requires Docker on x86)

The only zkVM available here is the deterministic dev-mode one, so its
control root and test receipt are written only with --dev-mode.
Otherwise ControlID.sol needs an explicit --control-root.

Only the JSON result goes to stdout; logs go to stderr.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from zkboot.core.config import BootstrapConfig
from zkboot.core.digest import Digest
from zkboot.core.errors import ConfigError
from zkboot.core.golden_vectors import bootstrap_control_id, bootstrap_test_receipt
from zkboot.core.groth16_prover import DockerGroth16Prover
from zkboot.core.pipeline import ProofBootstrapPipeline
from zkboot.core.verifier_sync import sync_verifying_key
from zkboot.core.zkvm import DevModeZkVm

logger = logging.getLogger("zkboot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Bootstrap the Groth16 verifiers')
    parser.add_argument('--root', default='.', help='Repository root holding both verifiers')
    parser.add_argument('--work-dir', help='Pipeline work directory (default: $RISC0_WORK_DIR or a temp dir)')
    parser.add_argument('--control-root', help='Control root digest as hex (required without --dev-mode)')
    parser.add_argument('--dev-mode', action='store_true',
                        help='Emit vectors from the dev-mode zkVM (not for deployment)')
    parser.add_argument('--skip-verifying-key', action='store_true', help='Do not sync groth16.rs')
    parser.add_argument('--skip-control-id', action='store_true', help='Do not write ControlID.sol')
    parser.add_argument('--skip-test-receipt', action='store_true', help='Do not write TestReceipt.sol')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')
    return parser


def check_args(args: argparse.Namespace, config: BootstrapConfig) -> None:
    """Reject runs that would write dev-mode vectors without --dev-mode"""
    if args.dev_mode:
        return
    if not args.skip_control_id and not config.control_root:
        raise ConfigError("--control-root is required unless --dev-mode is set")
    if not args.skip_test_receipt:
        raise ConfigError("the test receipt is generated by the dev-mode zkVM; "
                          "pass --dev-mode or --skip-test-receipt")


def run(args: argparse.Namespace) -> dict:
    config = BootstrapConfig.from_env(root=Path(args.root))
    if args.work_dir:
        config.work_dir = Path(args.work_dir)
    if args.control_root:
        config.control_root = args.control_root
    check_args(args, config)

    zkvm = DevModeZkVm()
    output = {'success': True, 'dev_mode': args.dev_mode}

    if not args.skip_verifying_key:
        result = sync_verifying_key(config)
        output['verifying_key'] = {
            'replaced': [target for _, target, _ in result.replaced],
            'missing_source': result.missing_source,
            'missing_target': result.missing_target,
        }

    if not args.skip_control_id:
        if config.control_root:
            control_root = Digest.from_hex(config.control_root)
        else:
            control_root = zkvm.control_root
            logger.warning("writing the dev-mode control root %s, do not deploy it", control_root)
        bootstrap_control_id(config, control_root)
        output['control_root'] = control_root.hex()

    if not args.skip_test_receipt:
        logger.warning("generating TestReceipt.sol from the dev-mode zkVM")
        pipeline = ProofBootstrapPipeline(zkvm, DockerGroth16Prover(), work_dir=config.work_dir)
        _, image_id = bootstrap_test_receipt(config, pipeline)
        output['image_id'] = image_id.hex()

    return output


def bootstrap_groth16_cli(argv=None) -> int:
    """Bootstrap the Groth16 verifiers from command line arguments"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        output = run(args)
    except Exception as e:
        logger.error("%s", e)
        print(json.dumps({
            'success': False,
            'error': str(e),
            'error_type': type(e).__name__,
        }))
        return 1

    print(json.dumps(output))
    return 0


if __name__ == '__main__':
    sys.exit(bootstrap_groth16_cli())
