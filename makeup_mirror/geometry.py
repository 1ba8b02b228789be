from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

# Below this magnitude a direction vector is treated as zero length.
_EPSILON = 1e-9


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class SubPath:
    points: Tuple[Point, ...]
    closed: bool = False

    def as_array(self) -> np.ndarray:
        return np.array(self.points, dtype=np.float64).reshape(-1, 2)


@dataclass
class Path:
    """Ordered collection of subpaths, filled or stroked as one shape."""

    subpaths: List[SubPath] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.subpaths

    def add(self, points: Sequence[Point], closed: bool = True) -> "Path":
        if len(points) >= 2:
            self.subpaths.append(SubPath(tuple(Point(*p) for p in points), closed))
        return self

    def points(self) -> List[Point]:
        return [pt for sub in self.subpaths for pt in sub.points]


def project(point: Point, width: float, height: float) -> Point:
    return Point(point.x * width, point.y * height)


def project_all(points: Iterable[Point], width: float, height: float) -> List[Point]:
    return [project(pt, width, height) for pt in points]


def polyline_path(points: Sequence[Point], closed: bool = False) -> Path:
    """Single-subpath path through ``points``; empty for fewer than 2 points."""
    return Path().add(points, closed=closed)


def circle_path(center: Point, radius: float, segments: Optional[int] = None) -> Path:
    """Closed polygon inscribed in the circle; empty for a non-positive radius."""
    if radius <= 0:
        return Path()
    if segments is None:
        segments = max(24, int(math.ceil(2 * math.pi * radius / 2.0)))
    step = 2 * math.pi / segments
    points = [
        Point(center[0] + radius * math.cos(i * step), center[1] + radius * math.sin(i * step))
        for i in range(segments)
    ]
    return polyline_path(points, closed=True)


def bounding_box(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    if not points:
        raise ValueError("bounding_box() needs at least one point")
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def polygon_area(points: Sequence[Point]) -> float:
    """Signed shoelace area; positive for clockwise order in image coordinates."""
    if len(points) < 3:
        return 0.0
    area = 0.0
    for (x0, y0), (x1, y1) in zip(points, list(points[1:]) + [points[0]]):
        area += x0 * y1 - x1 * y0
    return area / 2.0


def midpoint(points: Sequence[Point], index: Optional[int] = None) -> Point:
    """Point at ``index`` or, by default, at the middle index of the sequence."""
    if not points:
        raise ValueError("midpoint() needs at least one point")
    if index is None:
        index = len(points) // 2
    return Point(*points[index])


def tilt_angle(p0: Point, p1: Point) -> float:
    return math.atan2(p1[1] - p0[1], p1[0] - p0[0])


def arc_length(p0: Point, p1: Point) -> float:
    return math.hypot(p1[0] - p0[0], p1[1] - p0[1])


def unit_vector(dx: float, dy: float) -> Tuple[float, float]:
    mag = math.hypot(dx, dy)
    if mag > _EPSILON:
        return dx / mag, dy / mag
    # Degenerate direction: snap to the dominant axis, "up" when fully zero.
    if abs(dx) >= abs(dy) and dx != 0:
        return math.copysign(1.0, dx), 0.0
    if dy != 0:
        return 0.0, math.copysign(1.0, dy)
    return 0.0, -1.0


def image_scale(length: float, native_width: float) -> float:
    if length <= _EPSILON or native_width <= 0:
        return 1.0
    return length / native_width
