"""Points, corner sets and the small amount of plane geometry the scanner needs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

import math

from .errors import InvalidCornersError

QUADRANTS = ("top_left", "top_right", "bottom_right", "bottom_left")


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": float(self.x), "y": float(self.y)}


# Always ordered [top-left, top-right, bottom-right, bottom-left].
CornerSet = Tuple[Point, Point, Point, Point]


def as_point(value: Any) -> Point:
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point(float(value["x"]), float(value["y"]))
    x, y = value
    return Point(float(x), float(y))


def as_corner_set(points: Optional[Iterable[Any]]) -> CornerSet:
    """Coerce a sequence of four point-likes into a CornerSet.

    Accepts Points, ``(x, y)`` pairs or mappings with ``x``/``y`` keys. The
    order is taken as given; callers are responsible for TL, TR, BR, BL.
    """
    if points is None:
        raise InvalidCornersError("Expected 4 corner points, got none")
    try:
        coerced = tuple(as_point(p) for p in points)
    except (TypeError, ValueError, KeyError) as exc:
        raise InvalidCornersError(f"Unreadable corner points: {exc}") from exc
    if len(coerced) != 4:
        raise InvalidCornersError(f"Expected 4 corner points, got {len(coerced)}")
    return coerced  # type: ignore[return-value]


def bounding_corners(width: float, height: float) -> CornerSet:
    """Corner set covering a whole ``width`` x ``height`` image."""
    return (
        Point(0.0, 0.0),
        Point(float(width), 0.0),
        Point(float(width), float(height)),
        Point(0.0, float(height)),
    )


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def centroid(points: Iterable[Point]) -> Point:
    pts = list(points)
    if not pts:
        raise InvalidCornersError("Cannot compute the centroid of zero points")
    return Point(
        sum(p.x for p in pts) / len(pts),
        sum(p.y for p in pts) / len(pts),
    )


def edge_dimensions(corners: CornerSet) -> Tuple[float, float]:
    """Width and height of a quadrilateral as the longer of each pair of opposite edges."""
    tl, tr, br, bl = as_corner_set(corners)
    width = max(distance(tl, tr), distance(bl, br))
    height = max(distance(tl, bl), distance(tr, br))
    return width, height


def quadrant(point: Point, center: Point) -> Optional[str]:
    """Classify ``point`` relative to ``center``; points on either axis belong nowhere."""
    if point.y < center.y:
        if point.x < center.x:
            return "top_left"
        if point.x > center.x:
            return "top_right"
    elif point.y > center.y:
        if point.x > center.x:
            return "bottom_right"
        if point.x < center.x:
            return "bottom_left"
    return None


def simplify_ratio(width: float, height: float) -> Tuple[int, int]:
    w = int(round(width))
    h = int(round(height))
    divisor = math.gcd(w, h)
    if divisor == 0:
        return 0, 0
    return w // divisor, h // divisor


def detected_ratio(corners: CornerSet) -> str:
    """Human-readable ``w:h`` label for the proportions of a corner set."""
    width, height = edge_dimensions(corners)
    simplified_width, simplified_height = simplify_ratio(width, height)
    return f"{simplified_width}:{simplified_height}"


def corners_to_payload(corners: CornerSet) -> list[dict]:
    return [p.to_dict() for p in corners]
