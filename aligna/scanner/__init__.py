"""Document geometry and enhancement stages."""

from .aspect import AspectRatio, apply_ratio, apply_ratio_to_image, normalize_perspective
from .backend import OpenCVBackend, VisionBackend
from .detector import CornerDetector, DetectionResult
from .enhance import EnhancementMode, FilterBank
from .pipeline import ScanPipeline, ScanResult
from .rectifier import PerspectiveRectifier

__all__ = [
    "AspectRatio",
    "CornerDetector",
    "DetectionResult",
    "EnhancementMode",
    "FilterBank",
    "OpenCVBackend",
    "PerspectiveRectifier",
    "ScanPipeline",
    "ScanResult",
    "VisionBackend",
    "apply_ratio",
    "apply_ratio_to_image",
    "normalize_perspective",
]
