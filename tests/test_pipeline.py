from __future__ import annotations

import json

import numpy as np
import pytest
from PIL import Image

from aligna.config import AppConfig, AspectConfig, EnhancementConfig, OutputConfig
from aligna.geometry import detected_ratio, edge_dimensions
from aligna.scanner.aspect import AspectRatio
from aligna.scanner.pipeline import ScanPipeline


def test_scan_runs_every_stage(light_document):
    result = ScanPipeline().scan(light_document)

    assert result.steps_applied == ["detect", "rectify", "enhance_magic"]
    assert result.warnings == []
    assert result.image.ndim == 2
    assert abs(result.rectified.shape[1] - 300) <= 3
    assert result.corners == result.detected_corners


def test_scan_with_manual_corners_skips_detection(light_document):
    corners = [(50, 50), (349, 50), (349, 249), (50, 249)]
    result = ScanPipeline().scan(light_document, corners=corners, mode="original")

    assert result.steps_applied == ["rectify"]
    assert result.image.shape == (199, 299, 3)
    assert np.array_equal(result.image, result.rectified)


def test_scan_applies_configured_ratio(light_document):
    config = AppConfig(aspect=AspectConfig(ratio="square"))
    result = ScanPipeline(config).scan(light_document)

    assert "aspect_ratio" in result.steps_applied
    width, height = edge_dimensions(result.corners)
    assert width == pytest.approx(height)
    assert result.image.shape[0] == result.image.shape[1]


def test_ratio_argument_overrides_config(light_document):
    result = ScanPipeline().scan(light_document, ratio=AspectRatio.custom(2, 1))
    height, width = result.image.shape[:2]
    assert abs(width - 2 * height) <= 2


def test_scan_normalizes_perspective_when_enabled(light_document):
    config = AppConfig(aspect=AspectConfig(normalize_perspective=True))
    skewed = [(100, 50), (300, 50), (349, 249), (50, 249)]

    result = ScanPipeline(config).scan(light_document, corners=skewed)

    assert "normalize_perspective" in result.steps_applied
    tl, tr, br, bl = result.corners
    assert tl.y == pytest.approx(tr.y)
    assert bl.y == pytest.approx(br.y)


def test_blank_image_reports_detection_fallback():
    blank = np.full((120, 160, 3), 255, dtype=np.uint8)
    result = ScanPipeline(AppConfig(enhancement=EnhancementConfig(mode="bw"))).scan(blank)

    assert "detect" not in result.steps_applied
    assert any("image bounds" in warning for warning in result.warnings)
    assert result.image.shape == (120, 160)


def test_run_persists_artifacts(tmp_path, light_document_path):
    config = AppConfig(output=OutputConfig(base_path=tmp_path / "out"))

    result = ScanPipeline(config).run(light_document_path)

    assert result.processed_path == tmp_path / "out" / "document_magic.png"
    assert result.rectified_path.exists()
    with Image.open(result.processed_path) as saved:
        assert saved.size == (result.image.shape[1], result.image.shape[0])
    payload = json.loads(result.corners_path.read_text(encoding="utf-8"))
    assert payload["mode"] == "magic"
    assert payload["ratio"] == "auto"
    assert len(payload["corners"]) == 4
    assert payload["detected_ratio"] == detected_ratio(result.corners)
    assert payload["source_path"] == str(light_document_path)


def test_run_can_skip_optional_artifacts(tmp_path, light_document_path):
    config = AppConfig(
        output=OutputConfig(base_path=tmp_path / "out", save_rectified=False, save_corners_json=False)
    )
    result = ScanPipeline(config).run(light_document_path)
    assert result.processed_path.exists()
    assert result.rectified_path is None
    assert result.corners_path is None
