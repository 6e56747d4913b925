"""Perspective rectification of a detected document quadrilateral."""
from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

import logging
import time

import numpy as np

from ..config import RectifierConfig
from ..errors import ImageReadError, InvalidCornersError
from ..geometry import CornerSet, as_corner_set, edge_dimensions
from .backend import VisionBackend, default_backend
from .detector import CornerDetector
from .steps import StepResult, as_buffer

LOGGER = logging.getLogger(__name__)


class PerspectiveRectifier:
    """Maps a corner quadrilateral onto an axis-aligned output rectangle."""

    def __init__(
        self,
        backend: Optional[VisionBackend] = None,
        config: Optional[RectifierConfig] = None,
        detector: Optional[CornerDetector] = None,
    ) -> None:
        self.backend = backend or default_backend()
        self.config = config or RectifierConfig()
        self.detector = detector or CornerDetector(self.backend)

    def output_size(
        self,
        corners: CornerSet,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> Tuple[int, int]:
        edge_width, edge_height = edge_dimensions(corners)
        if not width:
            width = edge_width
        if not height:
            height = edge_height
        # Degenerate quadrilaterals still produce a usable canvas
        width = max(float(width), float(self.config.min_size))
        height = max(float(height), float(self.config.min_size))
        # Fractional edges truncate to whole pixels
        return int(width), int(height)

    def rectify(
        self,
        image: Any,
        corners: Optional[Iterable[Any]] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> np.ndarray:
        buffer = as_buffer(image)
        if corners is None:
            LOGGER.debug("No corners supplied; detecting before rectification")
            corners = self.detector.detect(buffer)
        tl, tr, br, bl = as_corner_set(corners)

        start = time.perf_counter()
        out_width, out_height = self.output_size((tl, tr, br, bl), width, height)

        # Row-major destination order: TL, TR, BL, BR
        source = [(tl.x, tl.y), (tr.x, tr.y), (bl.x, bl.y), (br.x, br.y)]
        destination = [
            (0.0, 0.0),
            (float(out_width), 0.0),
            (0.0, float(out_height)),
            (float(out_width), float(out_height)),
        ]
        matrix = self.backend.perspective_transform(source, destination)
        warped = self.backend.warp_perspective(buffer, matrix, (out_width, out_height))
        LOGGER.info(
            "Rectified %s -> %sx%s in %.3fs",
            buffer.shape,
            out_width,
            out_height,
            time.perf_counter() - start,
        )
        return warped

    def rectify_or_copy(
        self,
        image: Any,
        corners: Optional[Iterable[Any]] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> StepResult:
        """Rectify, or hand back an unrectified copy when the transform itself fails.

        Invalid corners and unreadable images still propagate.
        """
        try:
            return StepResult(image=self.rectify(image, corners, width, height), applied=True)
        except (InvalidCornersError, ImageReadError):
            raise
        except Exception as exc:
            LOGGER.warning("Perspective transform failed (%s); returning source copy", exc)
            return StepResult(
                image=as_buffer(image).copy(),
                applied=False,
                warning=f"Rectification failed ({exc}); showing the unrectified image.",
            )
