"""
Command line entry point: ``astrovessel-analyze``.

Usage example:
  astrovessel-analyze /data/stacks --config analysis.yaml --log-level DEBUG
  astrovessel-analyze --write-default-config analysis.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import SUPPORTED_BACKENDS, AnalysisConfig
from .core.exceptions import AstrovesselError
from .pipeline import run_batch


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ALL_FAILED = 1
EXIT_BAD_INPUT = 2
EXIT_NO_IMAGES = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="astrovessel-analyze",
        description="Classify astrocytes inside / outside blood vessels in 3D stacks (sequential batch).",
    )
    parser.add_argument("input_dir", type=Path, nargs="?", help="Folder containing the images")
    parser.add_argument("--config", type=Path, help="JSON or YAML configuration file")
    parser.add_argument("--output-dir", type=Path, help="Output folder (default: INPUT_DIR/Results)")
    parser.add_argument("--backend", choices=SUPPORTED_BACKENDS, help="Threshold backend")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--no-overlays", action="store_true", help="Do not save QA overlays")
    parser.add_argument(
        "--write-default-config",
        type=Path,
        metavar="FILE",
        help="Write the default configuration to FILE and exit",
    )
    return parser


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s: %(message)s",
    )
    logging.captureWarnings(True)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.write_default_config is not None:
        AnalysisConfig().save(args.write_default_config)
        print(f"Default configuration written to {args.write_default_config}")
        return EXIT_OK
    if args.input_dir is None:
        parser.error("INPUT_DIR is required")

    try:
        config = AnalysisConfig.load(args.config) if args.config else AnalysisConfig()
        changes = {}
        if args.backend:
            changes["threshold_backend"] = args.backend
        if args.log_level:
            changes["log_level"] = args.log_level
        if args.no_overlays:
            changes["save_overlays"] = False
        if changes:
            config = config.replace(**changes)
    except (OSError, AstrovesselError) as e:
        _setup_logging(args.log_level or "INFO")
        logger.error(f"Invalid configuration: {type(e).__name__}: {e}")
        return EXIT_BAD_INPUT

    _setup_logging(config.log_level)

    input_dir: Path = args.input_dir
    if not input_dir.is_dir():
        logger.error(f"Input dir not found: {input_dir}")
        return EXIT_BAD_INPUT

    result = run_batch(input_dir, config, args.output_dir)
    if result.total == 0:
        logger.error(f"No image with extension {list(config.image_extensions)} found in {input_dir}")
        return EXIT_NO_IMAGES
    if result.failed:
        for name, kind in result.failed:
            logger.warning(f"Failed: {name} ({kind})")
    if not result.completed:
        return EXIT_ALL_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
