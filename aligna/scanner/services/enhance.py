"""Standalone enhancement step."""
from __future__ import annotations

from typing import Dict
import logging
import time

from aligna.config import EnhancementConfig
from aligna.scanner import steps
from aligna.scanner.enhance import EnhancementMode, FilterBank

from ._payload import parse_payload

LOGGER = logging.getLogger(__name__)


def run(payload: Dict[str, object]) -> Dict[str, object]:
    image_path, params, output_dir = parse_payload(payload)
    mode = EnhancementMode.parse(str(params.get("mode", "magic")))
    config = EnhancementConfig(
        color_contrast=float(params.get("contrast", 1.2)),
        color_brightness=float(params.get("brightness", 10.0)),
    )

    image = steps.load_image(image_path)
    start = time.perf_counter()
    result = FilterBank(config=config).run(image, mode)
    elapsed = time.perf_counter() - start

    output_path = steps.save_image(result.image, output_dir / f"{image_path.stem}__{mode.value}.png")
    LOGGER.info(
        "enhance mode=%s applied=%s elapsed=%.2fs output=%s warning=%s",
        mode.value,
        result.applied,
        elapsed,
        output_path,
        result.warning,
    )
    return {
        "step": "enhance",
        "mode": mode.value,
        "applied": bool(result.applied),
        "warning": result.warning,
        "elapsed_seconds": elapsed,
        "output_path": str(output_path),
    }
