"""Standalone corner detection step."""
from __future__ import annotations

from typing import Dict
import json
import logging
import time

from aligna.config import DetectorConfig
from aligna.geometry import corners_to_payload, detected_ratio
from aligna.scanner import steps
from aligna.scanner.detector import CornerDetector

from ._payload import parse_payload

LOGGER = logging.getLogger(__name__)


def run(payload: Dict[str, object]) -> Dict[str, object]:
    image_path, params, output_dir = parse_payload(payload)
    config = DetectorConfig(
        blur_kernel=int(params.get("blur_kernel", 5)),
        ignore_frame_contours=bool(params.get("ignore_frame_contours", True)),
    )

    image = steps.load_image(image_path)
    start = time.perf_counter()
    result = CornerDetector(config=config).run(image)
    elapsed = time.perf_counter() - start

    corners = corners_to_payload(result.corners)
    output_path = output_dir / f"{image_path.stem}__corners.json"
    output_path.write_text(json.dumps({"corners": corners}, indent=2), encoding="utf-8")

    LOGGER.info(
        "detect fallback=%s elapsed=%.2fs output=%s warning=%s",
        result.fallback_used,
        elapsed,
        output_path,
        result.warning,
    )
    return {
        "step": "detect",
        "applied": not result.fallback_used,
        "warning": result.warning,
        "corners": corners,
        "detected_ratio": detected_ratio(result.corners),
        "elapsed_seconds": elapsed,
        "output_path": str(output_path),
    }
