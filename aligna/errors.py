"""Error taxonomy for the scanning core."""
from __future__ import annotations


class AlignaError(RuntimeError):
    """Base class for every error raised by the scanning core."""


class DetectionError(AlignaError):
    """Raised when an image cannot be read for corner detection."""


class ImageReadError(AlignaError):
    """Raised when a pixel buffer cannot be read or decoded."""


class InvalidCornersError(AlignaError, ValueError):
    """Raised when a corner set does not hold exactly four points."""


class InvalidRatioError(AlignaError, ValueError):
    """Raised for non-positive or unparsable aspect ratios."""


class EnhancementError(AlignaError):
    """Raised inside the filter bank; callers receive an unmodified copy instead."""
