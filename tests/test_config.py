from __future__ import annotations

from pathlib import Path

import pytest

from aligna.config import AppConfig, load_config
from aligna.errors import InvalidRatioError

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config.yaml"


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_no_path_gives_defaults():
    config = load_config(None)
    assert config == AppConfig()
    assert config.rectifier.min_size == 100
    assert config.enhancement.mode == "magic"
    assert config.enhancement.magic_block_size == 11
    assert config.enhancement.color_contrast == pytest.approx(1.2)
    assert config.aspect.skew_tolerance == pytest.approx(0.2)


def test_repository_config_loads():
    config = load_config(REPO_CONFIG)
    assert config.detector.blur_kernel == 5
    assert config.aspect.ratio == "auto"
    assert config.output.base_path == Path("output")


def test_partial_file_keeps_defaults(tmp_path):
    config = load_config(
        _write(
            tmp_path,
            "enhancement:\n  mode: BW\naspect:\n  ratio: '4:3'\noutput:\n  path: scans\n",
        )
    )
    assert config.enhancement.mode == "bw"
    assert config.enhancement.magic_offset == pytest.approx(2.0)
    assert config.aspect.ratio == "4:3"
    assert config.output.base_path == Path("scans")
    assert config.detector.ignore_frame_contours is True


def test_empty_file_is_all_defaults(tmp_path):
    assert load_config(_write(tmp_path, "")) == AppConfig()


def test_section_must_be_mapping(tmp_path):
    with pytest.raises(TypeError):
        load_config(_write(tmp_path, "detector: 5\n"))


@pytest.mark.parametrize(
    "text",
    [
        "enhancement:\n  mode: sepia\n",
        "detector:\n  blur_kernel: 4\n",
        "enhancement:\n  magic_block_size: 1\n",
        "aspect:\n  fit: stretch\n",
        "rectifier:\n  min_size: 0\n",
        "session:\n  debounce_seconds: -1\n",
    ],
)
def test_invalid_values_fail_at_load(tmp_path, text):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, text))


def test_invalid_ratio_fails_at_load(tmp_path):
    with pytest.raises(InvalidRatioError):
        load_config(_write(tmp_path, "aspect:\n  ratio: custom\n  custom_width: 0\n"))
