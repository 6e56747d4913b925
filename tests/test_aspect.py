from __future__ import annotations

import math

import numpy as np
import pytest

from aligna import apply_ratio, apply_ratio_to_image
from aligna.config import AspectConfig
from aligna.errors import InvalidCornersError, InvalidRatioError
from aligna.geometry import Point, centroid, edge_dimensions
from aligna.scanner.aspect import AspectRatio, has_perspective_distortion, normalize_perspective

TRAPEZOID = (Point(10, 10), Point(210, 20), Point(200, 160), Point(20, 150))


def _assert_axis_aligned(corners):
    tl, tr, br, bl = corners
    assert tl.y == pytest.approx(tr.y)
    assert bl.y == pytest.approx(br.y)
    assert tl.x == pytest.approx(bl.x)
    assert tr.x == pytest.approx(br.x)


def test_auto_is_identity():
    assert apply_ratio(TRAPEZOID, AspectRatio.auto()) == TRAPEZOID


def test_square_preserves_area_and_centroid():
    width, height = edge_dimensions(TRAPEZOID)

    corners = apply_ratio(TRAPEZOID, AspectRatio.square())

    _assert_axis_aligned(corners)
    new_width, new_height = edge_dimensions(corners)
    assert new_width == pytest.approx(new_height)
    assert new_width * new_height == pytest.approx(width * height, rel=1e-6)
    center = centroid(corners)
    original_center = centroid(TRAPEZOID)
    assert center.x == pytest.approx(original_center.x)
    assert center.y == pytest.approx(original_center.y)


def test_custom_two_to_one_on_square(square_corners):
    corners = apply_ratio(square_corners, AspectRatio.custom(2, 1))

    _assert_axis_aligned(corners)
    width, height = edge_dimensions(corners)
    assert width == pytest.approx(141.42, abs=0.01)
    assert height == pytest.approx(70.71, abs=0.01)
    center = centroid(corners)
    assert center.x == pytest.approx(50)
    assert center.y == pytest.approx(50)


@pytest.mark.parametrize(
    "ratio, expected",
    [
        (AspectRatio.square(), 1.0),
        (AspectRatio.four_three(), 4 / 3),
        (AspectRatio.sixteen_nine(), 16 / 9),
        (AspectRatio.three_two(), 1.5),
        (AspectRatio.custom(5, 7), 5 / 7),
    ],
)
def test_presets_resolve_to_numeric_ratio(square_corners, ratio, expected):
    assert ratio.value == pytest.approx(expected)
    width, height = edge_dimensions(apply_ratio(square_corners, ratio))
    assert width / height == pytest.approx(expected)


@pytest.mark.parametrize(
    "text, kind",
    [("auto", "auto"), ("", "auto"), ("Square", "square"), ("1:1", "square"), ("16:9", "16:9"), ("5:7", "custom")],
)
def test_parse(text, kind):
    assert AspectRatio.parse(text).kind == kind


def test_parse_custom_keyword_uses_supplied_dimensions():
    ratio = AspectRatio.parse("custom", 3, 1)
    assert ratio.value == pytest.approx(3.0)
    assert ratio.label == "3:1"


@pytest.mark.parametrize("width, height", [(0, 1), (1, 0), (-2, 1), (float("nan"), 1)])
def test_non_positive_custom_ratio_is_rejected(width, height):
    with pytest.raises(InvalidRatioError):
        AspectRatio.custom(width, height)


@pytest.mark.parametrize("text", ["wide", "a:b", "custom", "0:4"])
def test_unparsable_ratio_is_rejected(text):
    with pytest.raises(InvalidRatioError):
        AspectRatio.parse(text)


def test_from_config():
    ratio = AspectRatio.from_config(AspectConfig(ratio="custom", custom_width=2, custom_height=3))
    assert ratio.value == pytest.approx(2 / 3)


def test_apply_ratio_requires_four_corners():
    with pytest.raises(InvalidCornersError):
        apply_ratio([(0, 0), (1, 0), (1, 1)], AspectRatio.square())


def test_image_ratio_pads_with_white():
    image = np.zeros((100, 200, 3), dtype=np.uint8)

    output = apply_ratio_to_image(image, AspectRatio.square())

    assert output.shape == (200, 200, 3)
    assert (output[:50] == 255).all()
    assert (output[50:150] == 0).all()
    assert (output[150:] == 255).all()


def test_image_ratio_pads_tall_images_horizontally():
    image = np.zeros((200, 100), dtype=np.uint8)
    output = apply_ratio_to_image(image, AspectRatio.sixteen_nine())
    assert output.shape == (200, 356)


def test_image_ratio_crop_keeps_the_center():
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    image[:, 50:150] = 7

    output = apply_ratio_to_image(image, AspectRatio.square(), fit="crop")

    assert output.shape == (100, 100, 3)
    assert (output == 7).all()


def test_image_ratio_auto_returns_a_copy():
    image = np.zeros((10, 20), dtype=np.uint8)
    output = apply_ratio_to_image(image, AspectRatio.auto())
    assert np.array_equal(output, image)
    assert output is not image


def test_image_ratio_rejects_unknown_fit():
    with pytest.raises(ValueError):
        apply_ratio_to_image(np.zeros((10, 20), dtype=np.uint8), AspectRatio.square(), fit="stretch")


def test_rectangle_needs_no_normalization(square_corners):
    assert not has_perspective_distortion(square_corners)
    assert normalize_perspective(square_corners) == square_corners


def test_small_skew_stays_below_tolerance():
    corners = (Point(0, 0), Point(100, 0), Point(105, 100), Point(-5, 100))
    assert not has_perspective_distortion(corners)


def test_trapezoid_is_straightened():
    corners = (Point(50, 0), Point(150, 0), Point(200, 100), Point(0, 100))

    normalized = normalize_perspective(corners)

    _assert_axis_aligned(normalized)
    width, height = edge_dimensions(normalized)
    assert width == pytest.approx(150)
    assert height == pytest.approx(math.hypot(50, 100))
    center = centroid(normalized)
    assert center.x == pytest.approx(100)
    assert center.y == pytest.approx(50)


def test_normalization_follows_document_rotation():
    angle = math.radians(30)
    trapezoid = [(50, 0), (150, 0), (200, 100), (0, 100)]
    rotated = [
        (x * math.cos(angle) - y * math.sin(angle), x * math.sin(angle) + y * math.cos(angle))
        for x, y in trapezoid
    ]

    tl, tr, br, bl = normalize_perspective(rotated)

    assert math.atan2(tr.y - tl.y, tr.x - tl.x) == pytest.approx(angle)
    assert math.atan2(br.y - bl.y, br.x - bl.x) == pytest.approx(angle)
