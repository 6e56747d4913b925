"""Ready-to-use wrappers for individual scanning steps.

Each module exposes `run(payload: dict)` which accepts:
{
    "image_path": "<path>",
    "params": {...},
    "output_dir": "<optional>",
}
and returns a JSON-friendly dict with step result metadata.
"""

from .detect import run as run_detect
from .rectify import run as run_rectify
from .aspect import run as run_aspect
from .enhance import run as run_enhance

__all__ = [
    "run_detect",
    "run_rectify",
    "run_aspect",
    "run_enhance",
]
