"""Aligna: document corner detection, rectification and enhancement."""
from __future__ import annotations

from typing import Any, Iterable, Optional, Union

import numpy as np

from .errors import (
    AlignaError,
    DetectionError,
    EnhancementError,
    ImageReadError,
    InvalidCornersError,
    InvalidRatioError,
)
from .geometry import CornerSet, Point
from .scanner import (
    AspectRatio,
    CornerDetector,
    EnhancementMode,
    FilterBank,
    PerspectiveRectifier,
    ScanPipeline,
    apply_ratio,
    apply_ratio_to_image,
    normalize_perspective,
)


def detect(image: Any) -> CornerSet:
    return CornerDetector().detect(image)


def rectify(
    image: Any,
    corners: Optional[Iterable[Any]] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
) -> np.ndarray:
    return PerspectiveRectifier().rectify(image, corners, width, height)


def enhance(image: Any, mode: Union[EnhancementMode, str] = EnhancementMode.MAGIC) -> np.ndarray:
    return FilterBank().enhance(image, mode)


__all__ = [
    "AlignaError",
    "AspectRatio",
    "CornerDetector",
    "CornerSet",
    "DetectionError",
    "EnhancementError",
    "EnhancementMode",
    "FilterBank",
    "ImageReadError",
    "InvalidCornersError",
    "InvalidRatioError",
    "PerspectiveRectifier",
    "Point",
    "ScanPipeline",
    "apply_ratio",
    "apply_ratio_to_image",
    "detect",
    "enhance",
    "normalize_perspective",
    "rectify",
]
