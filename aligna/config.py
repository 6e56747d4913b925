"""Configuration helpers for the document scanner."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import logging

import yaml

LOGGER = logging.getLogger(__name__)

VALID_MODES = {"original", "none", "magic", "bw", "color"}
VALID_FITS = {"pad", "crop"}


@dataclass(slots=True)
class DetectorConfig:
    blur_kernel: int = 5
    ignore_frame_contours: bool = True


@dataclass(slots=True)
class RectifierConfig:
    min_size: int = 100


@dataclass(slots=True)
class AspectConfig:
    ratio: str = "auto"  # "auto", "square", "4:3", "16:9", "3:2", "custom" or any "w:h"
    custom_width: float = 1.0
    custom_height: float = 1.0
    normalize_perspective: bool = False
    skew_tolerance: float = 0.2
    fit: str = "pad"


@dataclass(slots=True)
class EnhancementConfig:
    mode: str = "magic"
    magic_blur_kernel: int = 3
    magic_block_size: int = 11
    magic_offset: float = 2.0
    magic_morph_kernel: int = 3
    sharpen_weight: float = 1.5
    laplacian_weight: float = -0.5
    color_contrast: float = 1.2
    color_brightness: float = 10.0


@dataclass(slots=True)
class SessionConfig:
    debounce_seconds: float = 0.1


@dataclass(slots=True)
class OutputConfig:
    base_path: Path = Path("output")
    save_rectified: bool = True
    save_corners_json: bool = True


@dataclass(slots=True)
class AppConfig:
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    rectifier: RectifierConfig = field(default_factory=RectifierConfig)
    aspect: AspectConfig = field(default_factory=AspectConfig)
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"Section '{key}' must be a mapping")
    return value


def _odd_kernel(value: Any, name: str) -> int:
    kernel = int(value)
    if kernel < 1 or kernel % 2 == 0:
        raise ValueError(f"{name} must be a positive odd integer, got {kernel}")
    return kernel


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Missing sections and keys keep their defaults; ``path=None`` yields the
    default configuration.
    """
    if path is None:
        LOGGER.debug("No config file given, using defaults")
        return AppConfig()

    raw_config = _load_yaml_file(path)
    if not isinstance(raw_config, dict):
        raise TypeError(f"Top level of {path} must be a mapping")

    detector_cfg = _section(raw_config, "detector")
    rectifier_cfg = _section(raw_config, "rectifier")
    aspect_cfg = _section(raw_config, "aspect")
    enhancement_cfg = _section(raw_config, "enhancement")
    session_cfg = _section(raw_config, "session")
    output_cfg = _section(raw_config, "output")

    config = AppConfig(
        detector=DetectorConfig(
            blur_kernel=_odd_kernel(detector_cfg.get("blur_kernel", 5), "detector.blur_kernel"),
            ignore_frame_contours=bool(detector_cfg.get("ignore_frame_contours", True)),
        ),
        rectifier=RectifierConfig(
            min_size=int(rectifier_cfg.get("min_size", 100)),
        ),
        aspect=AspectConfig(
            ratio=str(aspect_cfg.get("ratio", "auto")),
            custom_width=float(aspect_cfg.get("custom_width", 1.0)),
            custom_height=float(aspect_cfg.get("custom_height", 1.0)),
            normalize_perspective=bool(aspect_cfg.get("normalize_perspective", False)),
            skew_tolerance=float(aspect_cfg.get("skew_tolerance", 0.2)),
            fit=str(aspect_cfg.get("fit", "pad")),
        ),
        enhancement=EnhancementConfig(
            mode=str(enhancement_cfg.get("mode", "magic")).lower(),
            magic_blur_kernel=_odd_kernel(
                enhancement_cfg.get("magic_blur_kernel", 3), "enhancement.magic_blur_kernel"
            ),
            magic_block_size=_odd_kernel(
                enhancement_cfg.get("magic_block_size", 11), "enhancement.magic_block_size"
            ),
            magic_offset=float(enhancement_cfg.get("magic_offset", 2.0)),
            magic_morph_kernel=_odd_kernel(
                enhancement_cfg.get("magic_morph_kernel", 3), "enhancement.magic_morph_kernel"
            ),
            sharpen_weight=float(enhancement_cfg.get("sharpen_weight", 1.5)),
            laplacian_weight=float(enhancement_cfg.get("laplacian_weight", -0.5)),
            color_contrast=float(enhancement_cfg.get("color_contrast", 1.2)),
            color_brightness=float(enhancement_cfg.get("color_brightness", 10.0)),
        ),
        session=SessionConfig(
            debounce_seconds=float(session_cfg.get("debounce_seconds", 0.1)),
        ),
        output=OutputConfig(
            base_path=Path(output_cfg.get("path", "output")),
            save_rectified=bool(output_cfg.get("save_rectified", True)),
            save_corners_json=bool(output_cfg.get("save_corners_json", True)),
        ),
    )
    _validate(config)
    LOGGER.debug("Loaded configuration: %s", config)
    return config


def _validate(config: AppConfig) -> None:
    if config.enhancement.mode not in VALID_MODES:
        raise ValueError(
            f"enhancement.mode must be one of {sorted(VALID_MODES)}, got '{config.enhancement.mode}'"
        )
    if config.aspect.fit not in VALID_FITS:
        raise ValueError(f"aspect.fit must be one of {sorted(VALID_FITS)}, got '{config.aspect.fit}'")
    if config.enhancement.magic_block_size < 3:
        raise ValueError("enhancement.magic_block_size must be at least 3")
    if config.rectifier.min_size < 1:
        raise ValueError("rectifier.min_size must be positive")
    if config.aspect.skew_tolerance <= 0:
        raise ValueError("aspect.skew_tolerance must be positive")
    if config.session.debounce_seconds < 0:
        raise ValueError("session.debounce_seconds cannot be negative")

    from .scanner.aspect import AspectRatio

    # InvalidRatioError is a ValueError
    AspectRatio.from_config(config.aspect)


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    LOGGER.debug("Using PyYAML to parse %s", path)
    return yaml.safe_load(text) or {}
