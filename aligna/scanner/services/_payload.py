"""Payload parsing shared by the step services."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple


def parse_payload(payload: Dict[str, object]) -> Tuple[Path, Dict[str, object], Path]:
    image_path_raw = payload.get("image_path")
    if not image_path_raw:
        raise ValueError("payload must include 'image_path'")
    params = payload.get("params") or {}
    if not isinstance(params, dict):
        raise ValueError("payload 'params' must be a mapping")
    image_path = Path(str(image_path_raw))
    output_dir = Path(str(payload.get("output_dir") or image_path.parent))
    output_dir.mkdir(parents=True, exist_ok=True)
    return image_path, params, output_dir
