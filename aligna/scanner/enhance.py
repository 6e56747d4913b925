"""Enhancement filter bank for rectified documents."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

import logging
import time

import numpy as np

from ..config import EnhancementConfig
from ..errors import EnhancementError
from .backend import VisionBackend, default_backend
from .steps import StepResult, as_buffer

LOGGER = logging.getLogger(__name__)


class EnhancementMode(Enum):
    ORIGINAL = "original"
    MAGIC = "magic"
    BLACK_AND_WHITE = "bw"
    COLOR = "color"

    @classmethod
    def parse(cls, value: Union["EnhancementMode", str]) -> "EnhancementMode":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "none":
            return cls.ORIGINAL
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unknown enhancement mode '{value}'") from exc


class FilterBank:
    """Applies one of the enhancement pipelines to a rectified image.

    Enhancement is best effort: any failure inside a filter yields an
    unmodified copy of the input together with a warning.
    """

    def __init__(
        self,
        backend: Optional[VisionBackend] = None,
        config: Optional[EnhancementConfig] = None,
    ) -> None:
        self.backend = backend or default_backend()
        self.config = config or EnhancementConfig()

    def enhance(self, image: Any, mode: Union[EnhancementMode, str]) -> np.ndarray:
        return self.run(image, mode).image

    def run(self, image: Any, mode: Union[EnhancementMode, str]) -> StepResult:
        buffer = as_buffer(image)
        mode = EnhancementMode.parse(mode)
        if mode is EnhancementMode.ORIGINAL:
            return StepResult(image=buffer.copy(), applied=False)

        start = time.perf_counter()
        try:
            if mode is EnhancementMode.MAGIC:
                result = self._magic(buffer)
            elif mode is EnhancementMode.BLACK_AND_WHITE:
                result = self._black_and_white(buffer)
            else:
                result = self._color(buffer)
        except Exception as exc:
            LOGGER.warning("Enhancement '%s' failed (%s); returning original", mode.value, exc)
            return StepResult(
                image=buffer.copy(),
                applied=False,
                warning=f"Enhancement '{mode.value}' failed ({exc}); showing the unenhanced image.",
            )
        LOGGER.debug("Enhancement '%s' finished in %.3fs", mode.value, time.perf_counter() - start)
        return StepResult(image=result, applied=True)

    def _grayscale(self, image: np.ndarray) -> np.ndarray:
        try:
            return self.backend.to_grayscale(image)
        except ValueError as exc:
            raise EnhancementError(str(exc)) from exc

    def _magic(self, image: np.ndarray) -> np.ndarray:
        cfg = self.config
        gray = self._grayscale(image)
        blurred = self.backend.gaussian_blur(gray, cfg.magic_blur_kernel)
        binary = self.backend.adaptive_threshold(blurred, cfg.magic_block_size, cfg.magic_offset)
        closed = self.backend.morph_close(binary, cfg.magic_morph_kernel)
        edges = self.backend.laplacian(closed, 3)
        return self.backend.add_weighted(closed, cfg.sharpen_weight, edges, cfg.laplacian_weight, 0.0)

    def _black_and_white(self, image: np.ndarray) -> np.ndarray:
        return self.backend.otsu_threshold(self._grayscale(image))

    def _color(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
            raise EnhancementError(f"Unsupported channel layout: shape={image.shape}")
        result = image.copy()
        # Alpha stays untouched
        channels = result[:, :, :3] if image.ndim == 3 and image.shape[2] == 4 else result
        adjusted = self.config.color_contrast * (channels.astype(np.float32) - 128.0) + 128.0
        adjusted += self.config.color_brightness
        channels[...] = np.rint(np.clip(adjusted, 0, 255)).astype(np.uint8)
        return result
