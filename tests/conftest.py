from __future__ import annotations

import math
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pytest

from makeup_mirror.detector import DetectionResult
from makeup_mirror.topology import FaceLandmarks, Region


class FakeDetector:
    """Stands in for MediaPipe: returns the configured faces for every frame."""

    def __init__(self, faces: Iterable[FaceLandmarks] = ()) -> None:
        self.faces = list(faces)
        self.frames = []

    def detect(self, frame: np.ndarray) -> DetectionResult:
        self.frames.append(frame)
        return DetectionResult(image=frame, faces=list(self.faces))

    def close(self) -> None:
        pass


def build_landmarks(
    overrides: Optional[Dict[int, Tuple[float, float]]] = None,
    default: Tuple[float, float] = (0.5, 0.5),
    count: int = 478,
) -> FaceLandmarks:
    points = np.tile(np.array(default, dtype=np.float32), (count, 1))
    for index, (x, y) in (overrides or {}).items():
        points[index] = (x, y)
    return FaceLandmarks(points)


def ring(region: Region, center: Tuple[float, float], radius: float) -> Dict[int, Tuple[float, float]]:
    """Place a region's indices evenly on a circle, in region order."""
    count = len(region)
    return {
        index: (
            center[0] + radius * math.cos(2 * math.pi * i / count),
            center[1] + radius * math.sin(2 * math.pi * i / count),
        )
        for i, index in enumerate(region.indices)
    }


def solid_frame(width: int, height: int, bgr: Tuple[int, int, int]) -> np.ndarray:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:] = bgr
    return frame


@pytest.fixture
def landmarks_factory():
    return build_landmarks


@pytest.fixture
def ring_factory():
    return ring


@pytest.fixture
def frame_factory():
    return solid_frame


@pytest.fixture
def fake_detector_factory():
    return FakeDetector
