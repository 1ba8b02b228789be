from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .geometry import (
    Path,
    Point,
    arc_length,
    circle_path,
    image_scale,
    midpoint,
    polyline_path,
    tilt_angle,
    unit_vector,
)
from .paint import RadialGradient, Style
from .surface import Surface


def stroke_polyline(
    surface: Surface,
    style: Style,
    points: Sequence[Point],
    closed: bool = False,
) -> None:
    with surface.saved_state():
        path = polyline_path(points, closed=closed)
        if path.is_empty:
            return
        surface.stroke(path, style.color, style.line_width, style.line_cap, style.line_join)


def fill_polygon(surface: Surface, style: Style, points: Sequence[Point]) -> None:
    with surface.saved_state():
        surface.fill(polyline_path(points, closed=True), style.color)


def fill_with_subtraction(
    surface: Surface,
    style: Style,
    outer: Sequence[Point],
    holes: Sequence[Sequence[Point]],
) -> None:
    """Fill ``outer`` with every hole punched out (even-odd rule)."""
    with surface.saved_state():
        path = polyline_path(outer, closed=True)
        if path.is_empty:
            return
        for hole in holes:
            path.add(hole, closed=True)
        surface.fill(path, style.color, fill_rule="evenodd")


def fill_radial_gradient(surface: Surface, style: Style, center: Point, radius: float) -> None:
    """Soft disc: the style's stops ramped from ``center`` out to ``radius``."""
    with surface.saved_state():
        if radius <= 0:
            return
        gradient = RadialGradient(center=(center.x, center.y), radius=radius, stops=style.fade_stops())
        surface.fill(circle_path(center, radius), gradient)


def place_oriented_image(
    surface: Surface,
    image: Optional[np.ndarray],
    points: Sequence[Point],
    mirror: bool = False,
) -> None:
    """Draw ``image`` along the arc through ``points``.

    Centred on the middle point, rotated to the first-to-last chord and
    scaled so the image width matches the chord length.
    """
    with surface.saved_state():
        if image is None or image.size == 0 or len(points) < 2:
            return
        native_h, native_w = image.shape[:2]
        center = midpoint(points)
        start, end = points[0], points[-1]
        scale = image_scale(arc_length(start, end), native_w)
        draw_w = native_w * scale
        draw_h = native_h * scale

        surface.translate(center.x, center.y)
        surface.rotate(tilt_angle(start, end))
        if mirror:
            surface.scale(-1.0, 1.0)
        surface.draw_image(image, -draw_w / 2.0, -draw_h / 2.0, draw_w, draw_h)


def stroke_lash_fan(
    surface: Surface,
    style: Style,
    points: Sequence[Point],
    length: float = 10.0,
    fan_spread: float = 0.5,
    reverse: bool = False,
) -> None:
    """One short upward stroke per lid point, fanned out from the lid centre."""
    with surface.saved_state():
        if length <= 0:
            return
        count = len(points)
        path = Path()
        for i, root in enumerate(points):
            dx = (-1.0 if reverse else 1.0) * (i - count / 2.0) * fan_spread
            ux, uy = unit_vector(dx, -1.0)
            tip = Point(root.x + ux * length, root.y + uy * length)
            path.add([root, tip], closed=False)
        if path.is_empty:
            return
        surface.stroke(path, style.color, style.line_width, style.line_cap, style.line_join)
