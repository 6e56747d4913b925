"""Standalone perspective rectification step."""
from __future__ import annotations

from typing import Dict
import logging
import time

from aligna.config import RectifierConfig
from aligna.scanner import steps
from aligna.scanner.rectifier import PerspectiveRectifier

from ._payload import parse_payload

LOGGER = logging.getLogger(__name__)


def run(payload: Dict[str, object]) -> Dict[str, object]:
    """Rectify with ``params["corners"]``, detecting them first when absent."""
    image_path, params, output_dir = parse_payload(payload)
    config = RectifierConfig(min_size=int(params.get("min_size", 100)))
    width = params.get("width")
    height = params.get("height")

    image = steps.load_image(image_path)
    start = time.perf_counter()
    rectified = PerspectiveRectifier(config=config).rectify(
        image,
        params.get("corners"),
        float(width) if width else None,
        float(height) if height else None,
    )
    elapsed = time.perf_counter() - start

    output_path = steps.save_image(rectified, output_dir / f"{image_path.stem}__rectify.png")
    LOGGER.info("rectify elapsed=%.2fs output=%s size=%s", elapsed, output_path, rectified.shape[1::-1])
    return {
        "step": "rectify",
        "applied": True,
        "warning": None,
        "width": int(rectified.shape[1]),
        "height": int(rectified.shape[0]),
        "elapsed_seconds": elapsed,
        "output_path": str(output_path),
    }
