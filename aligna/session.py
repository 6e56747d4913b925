"""Consumer-side state for interactively refining one scanned document."""
from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Union

import logging
import threading

import numpy as np

from .errors import InvalidCornersError
from .geometry import CornerSet, as_corner_set, as_point
from .scanner import steps
from .scanner.aspect import AspectRatio, apply_ratio, apply_ratio_to_image
from .scanner.enhance import EnhancementMode
from .scanner.pipeline import ScanPipeline

LOGGER = logging.getLogger(__name__)


class CornerDebouncer:
    """Trailing-edge debounce for corner drags.

    Every ``push`` restarts the timer; the callback receives the most recent
    corner set once ``delay_seconds`` pass without a new push. ``flush``
    (pointer released) fires immediately with the pending corners, and does
    nothing when the timer already delivered them. Each push bumps a
    generation so a timer that was cancelled too late cannot fire twice.
    """

    def __init__(self, callback: Callable[[CornerSet], Any], delay_seconds: float = 0.1) -> None:
        self.callback = callback
        self.delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[CornerSet] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def push(self, corners: Iterable[Any]) -> None:
        corner_set = as_corner_set(corners)
        with self._lock:
            self._stop_timer()
            self._pending = corner_set
            self._timer = threading.Timer(self.delay_seconds, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> Any:
        with self._lock:
            self._stop_timer()
            corners = self._pending
            self._pending = None
        if corners is None:
            return None
        return self.callback(corners)

    def cancel(self) -> None:
        with self._lock:
            self._stop_timer()
            self._pending = None

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            corners = self._pending
            self._pending = None
            self._timer = None
        if corners is not None:
            self.callback(corners)


class DocumentSession:
    """Holds the image, detected and working corners, lock, mode and ratio.

    Corner sets are never mutated in place; every edit swaps in a new tuple so
    the auto-detected corners stay available for ``reset_corners``. The
    rectified buffer is cached and only recomputed after a corner change.
    """

    def __init__(
        self,
        image: Any,
        pipeline: Optional[ScanPipeline] = None,
        corners: Optional[Iterable[Any]] = None,
        on_render: Optional[Callable[[np.ndarray], Any]] = None,
    ) -> None:
        self.image = steps.as_buffer(image)
        self.pipeline = pipeline or ScanPipeline()
        self.on_render = on_render
        self.mode: EnhancementMode = self.pipeline.mode
        self.ratio: AspectRatio = AspectRatio.auto()
        self.locked = False
        self.warnings: List[str] = []
        self._lock = threading.RLock()
        self._ratio_on_canvas = False
        self._rectified: Optional[np.ndarray] = None
        self._drag_corners: Optional[CornerSet] = None
        self._debouncer = CornerDebouncer(
            self._apply_dragged, self.pipeline.config.session.debounce_seconds
        )

        if corners is None:
            self._detected = self._run_detection()
        else:
            self._detected = as_corner_set(corners)
        self._corners = self._detected

    @property
    def detected_corners(self) -> CornerSet:
        return self._detected

    @property
    def corners(self) -> CornerSet:
        return self._corners

    @property
    def rectified(self) -> np.ndarray:
        with self._lock:
            return self._rectify()

    def set_locked(self, locked: bool) -> None:
        with self._lock:
            self.locked = bool(locked)
            LOGGER.debug("Session %s", "locked" if self.locked else "unlocked")

    def move_corner(self, index: int, point: Any) -> CornerSet:
        with self._lock:
            if self._refuse_edit("move corner"):
                return self._corners
            moved = self._replace(self._corners, index, point)
            self._end_drag()
            return self._set_corners(moved)

    def update_corners(self, corners: Iterable[Any]) -> CornerSet:
        with self._lock:
            if self._refuse_edit("update corners"):
                return self._corners
            updated = as_corner_set(corners)
            self._end_drag()
            return self._set_corners(updated)

    def auto_detect(self) -> CornerSet:
        with self._lock:
            if self._refuse_edit("auto-detect"):
                return self._corners
            self._end_drag()
            self._detected = self._run_detection()
            return self._set_corners(self._detected)

    def reset_corners(self) -> CornerSet:
        with self._lock:
            if self._refuse_edit("reset corners"):
                return self._corners
            self._end_drag()
            return self._set_corners(self._detected)

    def drag_corner(self, index: int, point: Any) -> CornerSet:
        """Record an in-progress drag; the render runs once the pointer rests."""
        with self._lock:
            if self._refuse_edit("drag corner"):
                return self._corners
            self._drag_corners = self._replace(self._drag_corners or self._corners, index, point)
            self._debouncer.push(self._drag_corners)
            return self._drag_corners

    def release(self) -> Optional[np.ndarray]:
        """Pointer released: apply the final drag position immediately."""
        return self._debouncer.flush()

    def set_mode(self, mode: Union[EnhancementMode, str]) -> np.ndarray:
        with self._lock:
            self.mode = EnhancementMode.parse(mode)
            return self.render()

    def set_ratio(self, ratio: AspectRatio) -> np.ndarray:
        """Apply ``ratio`` to the corners, or to the rectified canvas while locked."""
        with self._lock:
            self.ratio = ratio
            self._end_drag()
            if self.locked:
                self._ratio_on_canvas = not ratio.is_auto
            else:
                self._ratio_on_canvas = False
                self._set_corners(apply_ratio(self._corners, ratio))
            return self.render()

    def render(self) -> np.ndarray:
        with self._lock:
            canvas = self._rectify()
            if self._ratio_on_canvas:
                canvas = apply_ratio_to_image(canvas, self.ratio, self.pipeline.config.aspect.fit)
            step = self.pipeline.filter_bank.run(canvas, self.mode)
            if step.warning:
                self.warnings.append(step.warning)
            return step.image

    def close(self) -> None:
        self._debouncer.cancel()

    def _apply_dragged(self, corners: CornerSet) -> Optional[np.ndarray]:
        with self._lock:
            if corners != self._drag_corners:
                LOGGER.debug("Dropping superseded corner drag")
                return None
            self._drag_corners = None
            if self._refuse_edit("apply drag"):
                return None
            self._set_corners(corners)
            output = self.render()
        if self.on_render is not None:
            self.on_render(output)
        return output

    def _rectify(self) -> np.ndarray:
        if self._rectified is None:
            step = self.pipeline.rectifier.rectify_or_copy(self.image, self._corners)
            if step.warning:
                self.warnings.append(step.warning)
            self._rectified = step.image
        return self._rectified

    def _run_detection(self) -> CornerSet:
        detection = self.pipeline.detector.run(self.image)
        if detection.warning:
            self.warnings.append(detection.warning)
        return detection.corners

    def _set_corners(self, corners: CornerSet) -> CornerSet:
        if corners != self._corners:
            self._rectified = None
        self._corners = corners
        return corners

    def _end_drag(self) -> None:
        # another edit wins over a drag that has not been applied yet
        self._debouncer.cancel()
        self._drag_corners = None

    def _refuse_edit(self, action: str) -> bool:
        if self.locked:
            LOGGER.warning("Document is locked; ignoring %s", action)
            return True
        return False

    @staticmethod
    def _replace(corners: CornerSet, index: int, point: Any) -> CornerSet:
        if not 0 <= index < 4:
            raise InvalidCornersError(f"Corner index must be between 0 and 3, got {index}")
        updated = list(corners)
        updated[index] = as_point(point)
        return as_corner_set(updated)
