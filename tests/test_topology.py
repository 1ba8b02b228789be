import numpy as np
import pytest

from makeup_mirror.geometry import Point
from makeup_mirror.topology import (
    FOREHEAD,
    REGIONS,
    FaceLandmarks,
    LandmarkTopologyError,
    Region,
)


@pytest.mark.parametrize("count", [468, 478])
def test_supported_counts(count):
    landmarks = FaceLandmarks(np.zeros((count, 2)))
    assert len(landmarks) == count


@pytest.mark.parametrize("shape", [(10, 2), (478, 3), (478,)])
def test_unexpected_shapes_are_rejected(shape):
    with pytest.raises(LandmarkTopologyError):
        FaceLandmarks(np.zeros(shape))


def test_landmarks_are_immutable_copies():
    source = np.zeros((478, 2), dtype=np.float32)
    landmarks = FaceLandmarks(source)
    source[0] = (1.0, 1.0)
    assert landmarks[0] == Point(0.0, 0.0)
    with pytest.raises(ValueError):
        landmarks.array[0, 0] = 0.5


def test_from_points_and_projection():
    landmarks = FaceLandmarks.from_points([(0.5, 0.25)] * 468)
    assert landmarks[10] == Point(0.5, 0.25)
    assert landmarks.projected(200, 100)[10].tolist() == [100.0, 25.0]


def test_region_validate_reports_out_of_range():
    region = Region("broken", (1, 2, 470))
    region.validate(478)
    with pytest.raises(LandmarkTopologyError, match="broken"):
        region.validate(468)


def test_builtin_regions_fit_the_base_mesh():
    for region in REGIONS.values():
        region.validate(468)


def test_region_points_follow_index_order():
    landmarks = FaceLandmarks(np.array([(i / 1000.0, 0.0) for i in range(478)]))
    xs = [round(p.x * 1000) for p in FOREHEAD.points(landmarks)]
    assert xs == list(FOREHEAD.indices)
