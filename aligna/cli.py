"""Command-line entry point: scan one document image."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import argparse
import json
import logging
import sys

from .config import AppConfig, load_config
from .errors import ImageReadError, InvalidCornersError, InvalidRatioError
from .geometry import CornerSet, as_corner_set
from .scanner import ScanPipeline

LOGGER = logging.getLogger(__name__)


def _parse_corners(text: str) -> CornerSet:
    """Parse ``"x,y;x,y;x,y;x,y"`` in TL, TR, BR, BL order."""
    try:
        pairs = [tuple(float(v) for v in chunk.split(",")) for chunk in text.split(";") if chunk.strip()]
    except ValueError as exc:
        raise InvalidCornersError(f"Unparsable corners '{text}'") from exc
    return as_corner_set(pairs)


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    aspect = config.aspect
    if args.ratio:
        aspect = replace(aspect, ratio=args.ratio)
    if args.normalize:
        aspect = replace(aspect, normalize_perspective=True)
    enhancement = config.enhancement
    if args.mode:
        enhancement = replace(enhancement, mode=args.mode.lower())
    output = config.output
    if args.output:
        output = replace(output, base_path=args.output)
    return replace(config, aspect=aspect, enhancement=enhancement, output=output)


def run_scan(config: AppConfig, image_path: Path, corners: Optional[CornerSet] = None) -> dict:
    pipeline = ScanPipeline(config)
    result = pipeline.run(image_path, corners=corners)
    for warning in result.warnings:
        LOGGER.warning(warning)
    LOGGER.info("Processed image written to %s", result.processed_path)
    return result.to_payload()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect, rectify and enhance a photographed document")
    parser.add_argument("image", type=Path, help="Path to the source image")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument(
        "--mode",
        choices=["original", "none", "magic", "bw", "color"],
        default=None,
        help="Enhancement mode (overrides config)",
    )
    parser.add_argument("--ratio", default=None, help="auto, square, 4:3, 16:9, 3:2 or any w:h")
    parser.add_argument("--corners", default=None, help="Manual corners 'x,y;x,y;x,y;x,y' (TL,TR,BR,BL)")
    parser.add_argument("--normalize", action="store_true", help="Straighten skewed quadrilaterals")
    parser.add_argument("--output", type=Path, default=None, help="Output directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        if args.config:
            LOGGER.info("Loading config from %s", args.config)
        config = _apply_overrides(load_config(args.config), args)
        corners = _parse_corners(args.corners) if args.corners else None
        payload = run_scan(config, args.image, corners)
    except (InvalidCornersError, InvalidRatioError) as exc:
        LOGGER.error("%s", exc)
        return 2
    except ImageReadError as exc:
        LOGGER.error("%s", exc)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
