"""Standalone aspect-ratio step for an already rectified image."""
from __future__ import annotations

from typing import Dict
import logging
import time

from aligna.scanner import steps
from aligna.scanner.aspect import AspectRatio, apply_ratio_to_image

from ._payload import parse_payload

LOGGER = logging.getLogger(__name__)


def run(payload: Dict[str, object]) -> Dict[str, object]:
    image_path, params, output_dir = parse_payload(payload)
    custom_width = params.get("custom_width")
    custom_height = params.get("custom_height")
    ratio = AspectRatio.parse(
        str(params.get("ratio", "auto")),
        float(custom_width) if custom_width is not None else None,
        float(custom_height) if custom_height is not None else None,
    )
    fit = str(params.get("fit", "pad"))

    image = steps.load_image(image_path)
    start = time.perf_counter()
    adjusted = apply_ratio_to_image(image, ratio, fit=fit)
    elapsed = time.perf_counter() - start

    output_path = steps.save_image(adjusted, output_dir / f"{image_path.stem}__aspect.png")
    LOGGER.info("aspect ratio=%s fit=%s elapsed=%.2fs output=%s", ratio.label, fit, elapsed, output_path)
    return {
        "step": "aspect",
        "applied": not ratio.is_auto,
        "warning": None,
        "ratio": ratio.label,
        "width": int(adjusted.shape[1]),
        "height": int(adjusted.shape[0]),
        "elapsed_seconds": elapsed,
        "output_path": str(output_path),
    }
