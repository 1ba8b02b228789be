import math

import numpy as np

from makeup_mirror.geometry import Point
from makeup_mirror.picker import LandmarkPicker, nearest_landmark
from makeup_mirror.topology import FaceLandmarks


def test_nearest_landmark_in_pixel_space(landmarks_factory):
    landmarks = landmarks_factory({42: (0.1, 0.2), 7: (0.9, 0.9)})
    assert nearest_landmark(Point(21, 39), landmarks, 200, 200) == 42
    assert nearest_landmark(Point(170, 185), landmarks, 200, 200) == 7


def test_nearest_landmark_uses_aspect_ratio(landmarks_factory):
    # Landmark 2 is closer in normalized space, landmark 1 once projected onto a wide frame.
    landmarks = landmarks_factory({1: (0.2, 0.9), 2: (0.45, 0.6)}, default=(0.0, 0.0))
    assert nearest_landmark(Point(200, 300), landmarks, 1000, 500) == 1


def test_ties_resolve_to_lowest_index(landmarks_factory):
    landmarks = landmarks_factory({5: (0.25, 0.5), 9: (0.25, 0.5)}, default=(0.9, 0.9))
    assert nearest_landmark(Point(25, 50), landmarks, 100, 100) == 5


def test_nearest_landmark_is_never_beaten():
    rng = np.random.default_rng(11)
    landmarks = FaceLandmarks(rng.uniform(0.0, 1.0, (478, 2)))
    pixels = landmarks.projected(320, 240)
    for x, y in rng.uniform(0.0, 320.0, (50, 2)):
        index = nearest_landmark(Point(x, y), landmarks, 320, 240)
        best = math.hypot(pixels[index][0] - x, pixels[index][1] - y)
        assert all(math.hypot(px - x, py - y) >= best for px, py in pixels)


def test_capture_scenario(landmarks_factory):
    landmarks = landmarks_factory({42: (0.1, 0.1)})
    picker = LandmarkPicker()
    picker.set_capture(True)

    assert picker.pick(Point(10, 10), landmarks, 100, 100) == 42
    assert picker.pick(Point(10, 10), landmarks, 100, 100) == 42
    assert picker.captured == [42]

    picker.set_capture(False)
    assert picker.captured == []
    assert not picker.capturing


def test_capture_allows_revisiting_after_another_point(landmarks_factory):
    landmarks = landmarks_factory({42: (0.1, 0.1), 43: (0.9, 0.9)})
    picker = LandmarkPicker()
    picker.set_capture(True)
    for point in (Point(10, 10), Point(90, 90), Point(10, 10)):
        picker.pick(point, landmarks, 100, 100)
    assert picker.captured == [42, 43, 42]


def test_pick_without_landmarks_returns_none():
    picker = LandmarkPicker()
    picker.set_capture(True)
    assert picker.pick(Point(1, 1), None, 100, 100) is None
    assert picker.captured == []


def test_pick_outside_capture_mode_does_not_record(landmarks_factory):
    picker = LandmarkPicker()
    assert picker.pick(Point(50, 50), landmarks_factory(), 100, 100) == 0
    assert picker.captured == []


def test_captured_is_a_copy(landmarks_factory):
    picker = LandmarkPicker()
    picker.set_capture(True)
    picker.pick(Point(50, 50), landmarks_factory(), 100, 100)
    picker.captured.append(99)
    assert picker.captured == [0]
