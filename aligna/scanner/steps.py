"""Pixel buffer helpers shared by the scanning stages."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List

import logging

import numpy as np
from PIL import Image, ImageOps

from ..errors import ImageReadError

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class StepResult:
    image: np.ndarray
    applied: bool
    warning: str | None = None


def load_image(path: Path) -> np.ndarray:
    """Read an image file into an RGB (or RGBA when it carries alpha) buffer."""
    try:
        with Image.open(path) as image:
            image = ImageOps.exif_transpose(image)
            mode = "RGBA" if "A" in image.getbands() else "RGB"
            return np.array(image.convert(mode))
    except (OSError, ValueError) as exc:
        raise ImageReadError(f"Could not read image {path}: {exc}") from exc


def save_image(image: np.ndarray, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.debug("Writing %s buffer to %s", image.shape, path)
    Image.fromarray(image).save(path, format="PNG")
    return path


def as_buffer(image: Any) -> np.ndarray:
    """Validate ``image`` as a uint8 pixel buffer of shape H x W or H x W x C.

    Stages decide for themselves which channel counts they support.
    """
    if isinstance(image, Image.Image):
        image = np.array(image)
    if not isinstance(image, np.ndarray):
        raise ImageReadError(f"Expected a numpy pixel buffer, got {type(image).__name__}")
    if image.dtype != np.uint8:
        raise ImageReadError(f"Expected uint8 pixels, got {image.dtype}")
    if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] == 0):
        raise ImageReadError(f"Unsupported pixel buffer shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ImageReadError("Cannot process an empty image")
    return image


def image_size(image: np.ndarray) -> tuple[int, int]:
    """(width, height) of a buffer."""
    return int(image.shape[1]), int(image.shape[0])


def record_step(
    steps: List[str],
    warnings: List[str],
    name: str,
    step_result: StepResult,
) -> np.ndarray:
    if step_result.applied:
        steps.append(name)
    if step_result.warning:
        warnings.append(step_result.warning)
    return step_result.image
