"""Document corner detection from contour geometry."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import logging
import time

import numpy as np

from ..config import DetectorConfig
from ..errors import DetectionError, ImageReadError
from ..geometry import CornerSet, Point, bounding_corners, distance, quadrant
from .backend import VisionBackend, default_backend
from .steps import as_buffer, image_size

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DetectionResult:
    corners: CornerSet
    fallback_used: bool = False
    warning: str | None = None
    contour_area: float = 0.0


class CornerDetector:
    """Finds the dominant quadrilateral in an image and returns its four corners.

    The image is grayscaled, blurred and Otsu-binarized; the contour with the
    largest enclosed area is taken as the document. Its corners are the points
    farthest from the contour's minimum-area-rectangle center in each quadrant.
    Every failure past input validation degrades to the image's own bounds.
    """

    def __init__(
        self,
        backend: Optional[VisionBackend] = None,
        config: Optional[DetectorConfig] = None,
    ) -> None:
        self.backend = backend or default_backend()
        self.config = config or DetectorConfig()

    def detect(self, image: Any) -> CornerSet:
        return self.run(image).corners

    def run(self, image: Any) -> DetectionResult:
        try:
            buffer = as_buffer(image)
        except ImageReadError as exc:
            raise DetectionError(str(exc)) from exc

        width, height = image_size(buffer)
        LOGGER.debug("Starting document detection on %sx%s image", width, height)
        start = time.perf_counter()

        try:
            contour, area = self._largest_contour(buffer)
        except Exception as exc:
            LOGGER.warning("Corner detection failed (%s); using image bounds", exc)
            return self._fallback(width, height, f"Detection failed ({exc}); using image bounds.")

        if contour is None:
            LOGGER.warning("No contour with positive area found; using image bounds")
            return self._fallback(width, height, "No document contour found; using image bounds.")

        corners = self._corner_points(contour)
        if corners is None:
            LOGGER.warning("Not all corners detected; using image bounds")
            return self._fallback(width, height, "Not all corners detected; using image bounds.")

        LOGGER.info(
            "Detected corners %s (area=%.0f) in %.3fs",
            [(round(p.x, 1), round(p.y, 1)) for p in corners],
            area,
            time.perf_counter() - start,
        )
        return DetectionResult(corners=corners, contour_area=area)

    def _largest_contour(self, image: np.ndarray) -> Tuple[Optional[np.ndarray], float]:
        width, height = image_size(image)
        gray = self.backend.to_grayscale(image)
        blurred = self.backend.gaussian_blur(gray, self.config.blur_kernel)
        binary = self.backend.otsu_threshold(blurred)
        contours = self.backend.find_contours(binary)
        LOGGER.debug("Found %d contours", len(contours))

        best: Optional[np.ndarray] = None
        max_area = 0.0
        for contour in contours:
            if len(contour) == 0:
                continue
            # A dark document on a light background leaves the frame as the largest contour
            if self.config.ignore_frame_contours and self.backend.bounding_rect(contour) == (0, 0, width, height):
                continue
            area = self.backend.contour_area(contour)
            if area > max_area:
                max_area = area
                best = contour
        return best, max_area

    def _corner_points(self, contour: np.ndarray) -> Optional[CornerSet]:
        cx, cy = self.backend.min_area_rect_center(contour)
        center = Point(cx, cy)
        farthest: Dict[str, Tuple[float, Point]] = {}

        for x, y in contour:
            point = Point(float(x), float(y))
            name = quadrant(point, center)
            if name is None:
                continue
            dist = distance(point, center)
            if name not in farthest or dist > farthest[name][0]:
                farthest[name] = (dist, point)

        if len(farthest) < 4:
            LOGGER.debug("Quadrants with points: %s", sorted(farthest))
            return None
        return (
            farthest["top_left"][1],
            farthest["top_right"][1],
            farthest["bottom_right"][1],
            farthest["bottom_left"][1],
        )

    @staticmethod
    def _fallback(width: int, height: int, warning: str) -> DetectionResult:
        return DetectionResult(
            corners=bounding_corners(width, height),
            fallback_used=True,
            warning=warning,
        )
