from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from aligna.geometry import Point

# 400x300 canvas with a 300x200 document centered in it
DOC_LEFT, DOC_TOP, DOC_RIGHT, DOC_BOTTOM = 50, 50, 350, 250


@pytest.fixture
def dark_document() -> np.ndarray:
    image = np.full((300, 400, 3), 255, dtype=np.uint8)
    image[DOC_TOP:DOC_BOTTOM, DOC_LEFT:DOC_RIGHT] = 0
    return image


@pytest.fixture
def light_document() -> np.ndarray:
    image = np.zeros((300, 400, 3), dtype=np.uint8)
    image[DOC_TOP:DOC_BOTTOM, DOC_LEFT:DOC_RIGHT] = 255
    return image


@pytest.fixture
def gradient_image() -> np.ndarray:
    ys, xs = np.mgrid[0:120, 0:150]
    gray = ((xs + ys) // 2).astype(np.uint8)
    return np.dstack([gray, 255 - gray, gray // 2])


@pytest.fixture
def square_corners():
    return (Point(0, 0), Point(100, 0), Point(100, 100), Point(0, 100))


@pytest.fixture
def light_document_path(tmp_path: Path, light_document: np.ndarray) -> Path:
    path = tmp_path / "input" / "document.png"
    path.parent.mkdir(parents=True)
    Image.fromarray(light_document).save(path)
    return path


def assert_close(point: Point, x: float, y: float, tolerance: float = 3.0) -> None:
    assert abs(point.x - x) <= tolerance and abs(point.y - y) <= tolerance, (point, (x, y))
