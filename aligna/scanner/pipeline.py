"""Single-image scanning pipeline: detect, adjust, rectify, enhance."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import json
import logging
import time

import numpy as np

from ..config import AppConfig
from ..geometry import CornerSet, as_corner_set, corners_to_payload, detected_ratio
from . import steps
from .aspect import AspectRatio, apply_ratio, normalize_perspective
from .backend import VisionBackend, default_backend
from .detector import CornerDetector
from .enhance import EnhancementMode, FilterBank
from .rectifier import PerspectiveRectifier

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanResult:
    image: np.ndarray
    rectified: np.ndarray
    detected_corners: CornerSet
    corners: CornerSet
    mode: EnhancementMode
    ratio: AspectRatio
    steps_applied: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    source_path: Optional[Path] = None
    processed_path: Optional[Path] = None
    rectified_path: Optional[Path] = None
    corners_path: Optional[Path] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "source_path": str(self.source_path) if self.source_path else None,
            "detected_corners": corners_to_payload(self.detected_corners),
            "corners": corners_to_payload(self.corners),
            "detected_ratio": detected_ratio(self.corners),
            "mode": self.mode.value,
            "ratio": self.ratio.label,
            "output_size": [int(self.image.shape[1]), int(self.image.shape[0])],
            "steps": self.steps_applied,
            "warnings": self.warnings,
            "elapsed_seconds": self.elapsed_seconds,
            "artifacts": {
                "processed_path": str(self.processed_path) if self.processed_path else None,
                "rectified_path": str(self.rectified_path) if self.rectified_path else None,
            },
        }


class ScanPipeline:
    """Sequence of scanning stages for one still image."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        backend: Optional[VisionBackend] = None,
        output_dir: Optional[Path] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.backend = backend or default_backend()
        self.output_dir = output_dir or self.config.output.base_path
        self.detector = CornerDetector(self.backend, self.config.detector)
        self.rectifier = PerspectiveRectifier(self.backend, self.config.rectifier, self.detector)
        self.filter_bank = FilterBank(self.backend, self.config.enhancement)
        self.ratio = AspectRatio.from_config(self.config.aspect)
        self.mode = EnhancementMode.parse(self.config.enhancement.mode)

    def scan(
        self,
        image: Any,
        corners: Optional[Iterable[Any]] = None,
        mode: Optional[Union[EnhancementMode, str]] = None,
        ratio: Optional[AspectRatio] = None,
    ) -> ScanResult:
        start = time.perf_counter()
        steps_applied: List[str] = []
        warnings: List[str] = []
        buffer = steps.as_buffer(image)
        mode = EnhancementMode.parse(mode) if mode is not None else self.mode
        ratio = ratio or self.ratio

        if corners is None:
            detection = self.detector.run(buffer)
            if detection.warning:
                warnings.append(detection.warning)
            if not detection.fallback_used:
                steps_applied.append("detect")
            detected = detection.corners
        else:
            detected = as_corner_set(corners)
        working = detected

        if self.config.aspect.normalize_perspective:
            normalized = normalize_perspective(working, self.config.aspect.skew_tolerance)
            if normalized != working:
                steps_applied.append("normalize_perspective")
            working = normalized

        if not ratio.is_auto:
            working = apply_ratio(working, ratio)
            steps_applied.append("aspect_ratio")

        rectified = steps.record_step(
            steps_applied, warnings, "rectify", self.rectifier.rectify_or_copy(buffer, working)
        )
        enhanced = steps.record_step(
            steps_applied, warnings, f"enhance_{mode.value}", self.filter_bank.run(rectified, mode)
        )

        elapsed = time.perf_counter() - start
        LOGGER.info(
            "Scan finished in %.2fs (steps=%s)",
            elapsed,
            ", ".join(steps_applied) if steps_applied else "none",
        )
        return ScanResult(
            image=enhanced,
            rectified=rectified,
            detected_corners=detected,
            corners=working,
            mode=mode,
            ratio=ratio,
            steps_applied=steps_applied,
            warnings=warnings,
            elapsed_seconds=elapsed,
        )

    def run(
        self,
        document_path: Path,
        corners: Optional[Iterable[Any]] = None,
        mode: Optional[Union[EnhancementMode, str]] = None,
        ratio: Optional[AspectRatio] = None,
    ) -> ScanResult:
        LOGGER.info("Scanning %s", document_path)
        image = steps.load_image(document_path)
        result = self.scan(image, corners=corners, mode=mode, ratio=ratio)
        result.source_path = document_path
        self._persist(document_path, result)
        return result

    def _persist(self, document_path: Path, result: ScanResult) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stem = document_path.stem
        result.processed_path = steps.save_image(
            result.image, self.output_dir / f"{stem}_{result.mode.value}.png"
        )
        if self.config.output.save_rectified:
            result.rectified_path = steps.save_image(
                result.rectified, self.output_dir / f"{stem}_rectified.png"
            )
        if self.config.output.save_corners_json:
            target = self.output_dir / f"{stem}.json"
            target.write_text(json.dumps(result.to_payload(), indent=2), encoding="utf-8")
            result.corners_path = target
            LOGGER.debug("Scan metadata written to %s", target)
