from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .geometry import Point
from .topology import FaceLandmarks

logger = logging.getLogger(__name__)


def nearest_landmark(point: Point, landmarks: FaceLandmarks, width: int, height: int) -> int:
    """Index of the landmark closest to ``point`` in pixel space; ties go to the lowest index."""
    pixels = landmarks.projected(width, height).astype(np.float64)
    distances = np.hypot(pixels[:, 0] - point[0], pixels[:, 1] - point[1])
    return int(np.argmin(distances))


class LandmarkPicker:
    """Maps clicks to landmark indices and records them while capturing."""

    def __init__(self) -> None:
        self._capturing = False
        self._captured: List[int] = []

    @property
    def capturing(self) -> bool:
        return self._capturing

    @property
    def captured(self) -> List[int]:
        return list(self._captured)

    def set_capture(self, enabled: bool) -> None:
        self._capturing = enabled
        if not enabled:
            self._captured.clear()

    def pick(
        self,
        point: Point,
        landmarks: Optional[FaceLandmarks],
        width: int,
        height: int,
    ) -> Optional[int]:
        if landmarks is None:
            return None
        index = nearest_landmark(point, landmarks, width, height)
        if self._capturing and (not self._captured or self._captured[-1] != index):
            self._captured.append(index)
        logger.info("Picked landmark %d, captured %s", index, self._captured)
        return index
