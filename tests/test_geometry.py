import math

import pytest

from makeup_mirror.geometry import (
    Point,
    arc_length,
    bounding_box,
    circle_path,
    image_scale,
    midpoint,
    polygon_area,
    polyline_path,
    project,
    project_all,
    tilt_angle,
    unit_vector,
)


def test_project_scales_by_surface_size():
    assert project(Point(0.25, 0.5), 640, 480) == Point(160.0, 240.0)


def test_polyline_path_preserves_projected_order():
    normalized = [Point(0.1, 0.2), Point(0.4, 0.3), Point(0.9, 0.8), Point(0.2, 0.7)]
    projected = project_all(normalized, 200, 100)

    path = polyline_path(projected)

    assert len(path.subpaths) == 1
    assert list(path.subpaths[0].points) == [project(p, 200, 100) for p in normalized]
    assert path.subpaths[0].closed is False


def test_polyline_path_closed_flag():
    path = polyline_path([Point(0, 0), Point(1, 0), Point(1, 1)], closed=True)
    assert path.subpaths[0].closed is True


@pytest.mark.parametrize("points", [[], [Point(3, 4)]])
def test_polyline_path_degenerate_input_is_empty(points):
    assert polyline_path(points).is_empty


def test_bounding_box():
    points = [Point(3, 9), Point(-1, 4), Point(7, 2)]
    assert bounding_box(points) == (-1, 2, 7, 9)


def test_bounding_box_rejects_empty():
    with pytest.raises(ValueError):
        bounding_box([])


def test_midpoint_uses_middle_index():
    points = [Point(i, i * 2) for i in range(9)]
    assert midpoint(points) == Point(4, 8)
    assert midpoint(points, 2) == Point(2, 4)


def test_tilt_angle_and_arc_length():
    assert tilt_angle(Point(0, 0), Point(1, 1)) == pytest.approx(math.pi / 4)
    assert arc_length(Point(0, 0), Point(3, 4)) == pytest.approx(5.0)


def test_unit_vector_normalizes():
    ux, uy = unit_vector(3.0, -4.0)
    assert (ux, uy) == pytest.approx((0.6, -0.8))


def test_unit_vector_zero_length_falls_back_upward():
    assert unit_vector(0.0, 0.0) == (0.0, -1.0)


def test_unit_vector_tiny_vector_snaps_to_dominant_axis():
    assert unit_vector(-1e-12, 1e-13) == (-1.0, 0.0)
    assert unit_vector(0.0, 1e-12) == (0.0, 1.0)


def test_image_scale_falls_back_to_unit_scale():
    assert image_scale(100.0, 50) == pytest.approx(2.0)
    assert image_scale(0.0, 50) == 1.0
    assert image_scale(10.0, 0) == 1.0


def test_polygon_area_sign_follows_winding():
    square = [Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10)]
    assert polygon_area(square) == pytest.approx(100.0)
    assert polygon_area(list(reversed(square))) == pytest.approx(-100.0)
    assert polygon_area([Point(5, 5)] * 9) == 0.0


def test_circle_path_is_inscribed():
    path = circle_path(Point(50, 50), 10)
    assert not path.is_empty
    for x, y in path.points():
        assert math.hypot(x - 50, y - 50) == pytest.approx(10.0)
    assert circle_path(Point(0, 0), 0).is_empty
