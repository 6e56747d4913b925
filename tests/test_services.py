from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from aligna.scanner.services import run_aspect, run_detect, run_enhance, run_rectify


def _payload(image_path: Path, output_dir: Path, **params) -> dict:
    return {"image_path": str(image_path), "params": params, "output_dir": str(output_dir)}


def test_detect_service_writes_corners(light_document_path, tmp_path):
    result = run_detect(_payload(light_document_path, tmp_path / "detect"))

    assert result["step"] == "detect"
    assert result["applied"] is True
    assert len(result["corners"]) == 4
    saved = json.loads(Path(result["output_path"]).read_text(encoding="utf-8"))
    assert saved["corners"] == result["corners"]


def test_rectify_service_with_explicit_corners(light_document_path, tmp_path):
    corners = [[50, 50], [349, 50], [349, 249], [50, 249]]
    result = run_rectify(_payload(light_document_path, tmp_path / "rectify", corners=corners))

    assert (result["width"], result["height"]) == (299, 199)
    with Image.open(result["output_path"]) as saved:
        assert saved.size == (299, 199)


def test_rectify_service_detects_when_no_corners(light_document_path, tmp_path):
    result = run_rectify(_payload(light_document_path, tmp_path))
    assert abs(result["width"] - 300) <= 3


def test_aspect_service_pads_to_ratio(light_document_path, tmp_path):
    result = run_aspect(_payload(light_document_path, tmp_path, ratio="square"))
    assert result["applied"] is True
    assert result["width"] == result["height"] == 400


def test_enhance_service(light_document_path, tmp_path):
    result = run_enhance(_payload(light_document_path, tmp_path, mode="bw"))
    assert result["mode"] == "bw"
    assert result["applied"] is True
    with Image.open(result["output_path"]) as saved:
        assert saved.mode == "L"


def test_output_dir_defaults_to_image_folder(light_document_path):
    result = run_enhance({"image_path": str(light_document_path), "params": {"mode": "color"}})
    assert Path(result["output_path"]).parent == light_document_path.parent


@pytest.mark.parametrize("service", [run_detect, run_rectify, run_aspect, run_enhance])
def test_services_require_image_path(service):
    with pytest.raises(ValueError):
        service({"params": {}})
