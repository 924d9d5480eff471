#!/usr/bin/env python3
"""
CLI tool to provision the recursion circuit artifact

Resolves the artifact from the build cache, a local copy or the artifact
bucket, and reports the GPU kernel paths to export to the build.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from zkboot.core.artifact_cache import ArtifactCache
from zkboot.core.config import ArtifactSettings, kernel_paths

logger = logging.getLogger("zkboot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Fetch the recursion circuit artifact')
    parser.add_argument('--digest', help='Expected SHA-256 (default: pinned recursion_zkr.zip digest)')
    parser.add_argument('--src', help='Local copy to prefer (default: $RECURSION_SRC_PATH)')
    parser.add_argument('--out-dir', help='Cache directory (default: $OUT_DIR)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')
    return parser


def run(args: argparse.Namespace) -> dict:
    settings = ArtifactSettings.from_env()
    if args.digest:
        settings.sha256 = args.digest
    if args.src:
        settings.src_path = Path(args.src)
    if args.out_dir:
        settings.out_dir = Path(args.out_dir)

    env = kernel_paths()
    artifact = ArtifactCache(settings).obtain_default()

    output = {'success': True, 'env': env}
    if artifact is None:
        output['skipped'] = True
    else:
        output['artifact'] = {
            'name': artifact.name,
            'path': str(artifact.path),
            'sha256': artifact.digest.hex(),
        }
    return output


def fetch_artifact_cli(argv=None) -> int:
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
    sys.exit(fetch_artifact_cli())
