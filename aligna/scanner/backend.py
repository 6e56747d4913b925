"""Vision backend used by the detector, rectifier and filter bank.

Stages receive a backend through their constructor instead of reaching for a
global image library handle, so an alternative implementation can be swapped
in (for instance in tests).
"""
from __future__ import annotations

from typing import List, Protocol, Sequence, Tuple

import logging

import cv2
import numpy as np

LOGGER = logging.getLogger(__name__)


class VisionBackend(Protocol):
    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        ...

    def gaussian_blur(self, image: np.ndarray, kernel: int) -> np.ndarray:
        ...

    def otsu_threshold(self, gray: np.ndarray) -> np.ndarray:
        ...

    def adaptive_threshold(self, gray: np.ndarray, block_size: int, offset: float) -> np.ndarray:
        ...

    def find_contours(self, binary: np.ndarray) -> List[np.ndarray]:
        ...

    def contour_area(self, contour: np.ndarray) -> float:
        ...

    def bounding_rect(self, contour: np.ndarray) -> Tuple[int, int, int, int]:
        ...

    def min_area_rect_center(self, contour: np.ndarray) -> Tuple[float, float]:
        ...

    def morph_close(self, image: np.ndarray, kernel: int) -> np.ndarray:
        ...

    def laplacian(self, image: np.ndarray, kernel: int = 3) -> np.ndarray:
        ...

    def add_weighted(
        self, first: np.ndarray, alpha: float, second: np.ndarray, beta: float, gamma: float = 0.0
    ) -> np.ndarray:
        ...

    def perspective_transform(
        self, source: Sequence[Tuple[float, float]], destination: Sequence[Tuple[float, float]]
    ) -> np.ndarray:
        ...

    def warp_perspective(self, image: np.ndarray, matrix: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        ...


class OpenCVBackend:
    """VisionBackend implemented with OpenCV on RGB(A) / grayscale uint8 arrays."""

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return image.copy()
        if image.ndim == 3 and image.shape[2] == 1:
            return image[:, :, 0].copy()
        if image.ndim == 3 and image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        if image.ndim == 3 and image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
        raise ValueError(f"Unsupported channel layout: shape={image.shape}")

    def gaussian_blur(self, image: np.ndarray, kernel: int) -> np.ndarray:
        return cv2.GaussianBlur(image, (kernel, kernel), 0, borderType=cv2.BORDER_DEFAULT)

    def otsu_threshold(self, gray: np.ndarray) -> np.ndarray:
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    def adaptive_threshold(self, gray: np.ndarray, block_size: int, offset: float) -> np.ndarray:
        return cv2.adaptiveThreshold(
            gray,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            block_size,
            offset,
        )

    def find_contours(self, binary: np.ndarray) -> List[np.ndarray]:
        # Outer boundaries and holes, two-level hierarchy
        contours, _ = cv2.findContours(binary, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_SIMPLE)
        return [contour.reshape(-1, 2) for contour in contours]

    def contour_area(self, contour: np.ndarray) -> float:
        return float(cv2.contourArea(contour.reshape(-1, 1, 2)))

    def bounding_rect(self, contour: np.ndarray) -> Tuple[int, int, int, int]:
        x, y, w, h = cv2.boundingRect(contour.reshape(-1, 1, 2))
        return int(x), int(y), int(w), int(h)

    def min_area_rect_center(self, contour: np.ndarray) -> Tuple[float, float]:
        (cx, cy), _, _ = cv2.minAreaRect(contour.reshape(-1, 1, 2))
        return float(cx), float(cy)

    def morph_close(self, image: np.ndarray, kernel: int) -> np.ndarray:
        element = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel, kernel))
        return cv2.morphologyEx(image, cv2.MORPH_CLOSE, element)

    def laplacian(self, image: np.ndarray, kernel: int = 3) -> np.ndarray:
        # CV_8U saturates negative responses to zero
        return cv2.Laplacian(image, cv2.CV_8U, ksize=kernel)

    def add_weighted(
        self, first: np.ndarray, alpha: float, second: np.ndarray, beta: float, gamma: float = 0.0
    ) -> np.ndarray:
        return cv2.addWeighted(first, alpha, second, beta, gamma)

    def perspective_transform(
        self, source: Sequence[Tuple[float, float]], destination: Sequence[Tuple[float, float]]
    ) -> np.ndarray:
        src = np.array(source, dtype=np.float32)
        dst = np.array(destination, dtype=np.float32)
        return cv2.getPerspectiveTransform(src, dst)

    def warp_perspective(self, image: np.ndarray, matrix: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        LOGGER.debug("Warping %s into %s", image.shape, size)
        return cv2.warpPerspective(
            image,
            matrix,
            size,
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )


def default_backend() -> OpenCVBackend:
    return OpenCVBackend()
