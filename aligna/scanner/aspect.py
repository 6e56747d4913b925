"""Aspect-ratio adjustment of corner sets and rectified canvases."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

import logging
import math

import numpy as np

from ..config import AspectConfig
from ..errors import InvalidRatioError
from ..geometry import CornerSet, Point, as_corner_set, centroid, distance, edge_dimensions
from .steps import as_buffer

LOGGER = logging.getLogger(__name__)

PRESET_RATIOS = {
    "square": 1.0,
    "4:3": 4.0 / 3.0,
    "16:9": 16.0 / 9.0,
    "3:2": 3.0 / 2.0,
}
_PRESET_ALIASES = {"1:1": "square"}


@dataclass(frozen=True, slots=True)
class AspectRatio:
    kind: str = "auto"
    width: Optional[float] = None
    height: Optional[float] = None

    def __post_init__(self) -> None:
        if self.kind == "custom":
            if self.width is None or self.height is None:
                raise InvalidRatioError("Custom ratio needs both width and height")
            if not (self.width > 0 and self.height > 0) or math.isinf(self.width) or math.isinf(self.height):
                raise InvalidRatioError(
                    f"Custom ratio dimensions must be positive, got {self.width}:{self.height}"
                )
        elif self.kind != "auto" and self.kind not in PRESET_RATIOS:
            raise InvalidRatioError(f"Unknown aspect ratio '{self.kind}'")

    @classmethod
    def auto(cls) -> "AspectRatio":
        return cls("auto")

    @classmethod
    def square(cls) -> "AspectRatio":
        return cls("square")

    @classmethod
    def four_three(cls) -> "AspectRatio":
        return cls("4:3")

    @classmethod
    def sixteen_nine(cls) -> "AspectRatio":
        return cls("16:9")

    @classmethod
    def three_two(cls) -> "AspectRatio":
        return cls("3:2")

    @classmethod
    def custom(cls, width: float, height: float) -> "AspectRatio":
        return cls("custom", float(width), float(height))

    @classmethod
    def parse(
        cls,
        text: str,
        custom_width: Optional[float] = None,
        custom_height: Optional[float] = None,
    ) -> "AspectRatio":
        """Parse ``auto``, a preset name, ``custom`` or any ``w:h`` string."""
        key = (text or "auto").strip().lower()
        key = _PRESET_ALIASES.get(key, key)
        if key == "auto":
            return cls.auto()
        if key in PRESET_RATIOS:
            return cls(key)
        if key == "custom":
            if custom_width is None or custom_height is None:
                raise InvalidRatioError("Custom ratio needs both width and height")
            return cls.custom(custom_width, custom_height)
        width_text, sep, height_text = key.partition(":")
        if not sep:
            raise InvalidRatioError(f"Unparsable aspect ratio '{text}'")
        try:
            return cls.custom(float(width_text), float(height_text))
        except ValueError as exc:
            raise InvalidRatioError(f"Unparsable aspect ratio '{text}'") from exc

    @classmethod
    def from_config(cls, config: AspectConfig) -> "AspectRatio":
        return cls.parse(config.ratio, config.custom_width, config.custom_height)

    @property
    def is_auto(self) -> bool:
        return self.kind == "auto"

    @property
    def value(self) -> Optional[float]:
        """Numeric width/height, or None for auto."""
        if self.kind == "auto":
            return None
        if self.kind == "custom":
            return float(self.width) / float(self.height)  # type: ignore[arg-type]
        return PRESET_RATIOS[self.kind]

    @property
    def label(self) -> str:
        if self.kind == "custom":
            return f"{self.width:g}:{self.height:g}"
        if self.kind == "square":
            return "1:1"
        return self.kind


def apply_ratio(corners: Iterable[Any], ratio: AspectRatio) -> CornerSet:
    """Replace a quadrilateral with an axis-aligned one of the same area at ``ratio``.

    Auto returns the input corners untouched. Any other ratio discards skew:
    the result is centered on the quadrilateral's centroid.
    """
    corner_set = as_corner_set(corners)
    if ratio.is_auto:
        return corner_set

    target = ratio.value
    if target is None or target <= 0:
        raise InvalidRatioError(f"Invalid aspect ratio {ratio}")

    center = centroid(corner_set)
    width, height = edge_dimensions(corner_set)
    area = width * height
    new_width = math.sqrt(area * target)
    new_height = new_width / target
    half_w = new_width / 2.0
    half_h = new_height / 2.0
    LOGGER.debug(
        "Applying ratio %s: %.1fx%.1f -> %.1fx%.1f around (%.1f, %.1f)",
        ratio.label,
        width,
        height,
        new_width,
        new_height,
        center.x,
        center.y,
    )
    return (
        Point(center.x - half_w, center.y - half_h),
        Point(center.x + half_w, center.y - half_h),
        Point(center.x + half_w, center.y + half_h),
        Point(center.x - half_w, center.y + half_h),
    )


def apply_ratio_to_image(image: Any, ratio: AspectRatio, fit: str = "pad") -> np.ndarray:
    """Bring a rectified canvas to ``ratio`` by white padding or a centered crop."""
    buffer = as_buffer(image)
    if ratio.is_auto:
        return buffer.copy()
    target = ratio.value
    if target is None or target <= 0:
        raise InvalidRatioError(f"Invalid aspect ratio {ratio}")

    height, width = buffer.shape[:2]
    current = width / float(height)

    if fit == "pad":
        if current > target:
            new_width, new_height = width, max(height, int(round(width / target)))
        else:
            new_width, new_height = max(width, int(round(height * target))), height
        canvas = np.full((new_height, new_width) + buffer.shape[2:], 255, dtype=np.uint8)
        left = (new_width - width) // 2
        top = (new_height - height) // 2
        canvas[top:top + height, left:left + width] = buffer
        LOGGER.debug("Padded %sx%s to %sx%s for ratio %s", width, height, new_width, new_height, ratio.label)
        return canvas

    if fit == "crop":
        if current > target:
            new_width, new_height = max(1, min(width, int(round(height * target)))), height
        else:
            new_width, new_height = width, max(1, min(height, int(round(width / target))))
        left = (width - new_width) // 2
        top = (height - new_height) // 2
        LOGGER.debug("Cropped %sx%s to %sx%s for ratio %s", width, height, new_width, new_height, ratio.label)
        return buffer[top:top + new_height, left:left + new_width].copy()

    raise ValueError(f"fit must be 'pad' or 'crop', got '{fit}'")


def _differs(first: float, second: float, tolerance: float) -> bool:
    average = (first + second) / 2.0
    return average > 0 and abs(first - second) / average > tolerance


def has_perspective_distortion(corners: Iterable[Any], tolerance: float = 0.2) -> bool:
    tl, tr, br, bl = as_corner_set(corners)
    top, bottom = distance(tl, tr), distance(bl, br)
    left, right = distance(tl, bl), distance(tr, br)
    return _differs(top, bottom, tolerance) or _differs(left, right, tolerance)


def normalize_perspective(corners: Iterable[Any], tolerance: float = 0.2) -> CornerSet:
    """Straighten a visibly skewed quadrilateral into a rotated rectangle.

    When opposite edges differ by more than ``tolerance`` of their average, the
    corners are replaced by a rectangle of the averaged width and height,
    centered on the centroid and turned to the mean top/bottom edge angle.
    Otherwise the input is returned unchanged.
    """
    corner_set = as_corner_set(corners)
    if not has_perspective_distortion(corner_set, tolerance):
        return corner_set

    tl, tr, br, bl = corner_set
    width = (distance(tl, tr) + distance(bl, br)) / 2.0
    height = (distance(tl, bl) + distance(tr, br)) / 2.0
    dx = (tr.x - tl.x) + (br.x - bl.x)
    dy = (tr.y - tl.y) + (br.y - bl.y)
    angle = math.atan2(dy, dx)
    center = centroid(corner_set)
    cos_a, sin_a = math.cos(angle), math.sin(angle)

    def place(offset_x: float, offset_y: float) -> Point:
        return Point(
            center.x + offset_x * cos_a - offset_y * sin_a,
            center.y + offset_x * sin_a + offset_y * cos_a,
        )

    half_w, half_h = width / 2.0, height / 2.0
    LOGGER.debug(
        "Normalizing perspective: %.1fx%.1f at %.2f deg", width, height, math.degrees(angle)
    )
    return (
        place(-half_w, -half_h),
        place(half_w, -half_h),
        place(half_w, half_h),
        place(-half_w, half_h),
    )
