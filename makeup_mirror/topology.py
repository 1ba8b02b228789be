from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from .geometry import Point

# Face Mesh emits 468 points, 478 with refined irises.
SUPPORTED_LANDMARK_COUNTS = (468, 478)


class LandmarkTopologyError(ValueError):
    """Landmark sequence or region does not fit the Face Mesh topology."""


class FaceLandmarks:
    """Immutable ordered set of normalized landmarks for one face."""

    __slots__ = ("_points",)

    def __init__(self, points: np.ndarray) -> None:
        array = np.asarray(points, dtype=np.float32)
        if array.ndim != 2 or array.shape[1] != 2:
            raise LandmarkTopologyError(
                f"Landmarks must have shape (N, 2), got {array.shape}"
            )
        if array.shape[0] not in SUPPORTED_LANDMARK_COUNTS:
            raise LandmarkTopologyError(
                f"Unsupported landmark count {array.shape[0]}, "
                f"expected one of {SUPPORTED_LANDMARK_COUNTS}"
            )
        array = array.copy()
        array.setflags(write=False)
        self._points = array

    @classmethod
    def from_points(cls, points: Iterable[Tuple[float, float]]) -> "FaceLandmarks":
        return cls(np.array([(float(x), float(y)) for x, y in points], dtype=np.float32))

    @property
    def array(self) -> np.ndarray:
        return self._points

    def __len__(self) -> int:
        return int(self._points.shape[0])

    def __getitem__(self, index: int) -> Point:
        x, y = self._points[index]
        return Point(float(x), float(y))

    def __iter__(self) -> Iterator[Point]:
        for x, y in self._points:
            yield Point(float(x), float(y))

    def select(self, indices: Sequence[int]) -> List[Point]:
        return [self[i] for i in indices]

    def projected(self, width: int, height: int) -> np.ndarray:
        """Pixel coordinates of every landmark as a float32 (N, 2) array."""
        scale = np.array([width, height], dtype=np.float32)
        return self._points * scale


@dataclass(frozen=True)
class Region:
    name: str
    indices: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    def validate(self, landmark_count: int) -> None:
        bad = [i for i in self.indices if i < 0 or i >= landmark_count]
        if bad:
            raise LandmarkTopologyError(
                f"Region '{self.name}' references indices {bad} outside 0..{landmark_count - 1}"
            )

    def points(self, landmarks: FaceLandmarks) -> List[Point]:
        return landmarks.select(self.indices)


def _region(name: str, *indices: int) -> Region:
    return Region(name=name, indices=tuple(indices))


# Lower lid contour, outer corner to inner corner. Also used as the lash line.
RIGHT_EYE = _region("right_eye", 33, 7, 163, 144, 145, 153, 154, 155, 133)
LEFT_EYE = _region("left_eye", 263, 249, 390, 373, 374, 380, 381, 382, 362)

# Upper lid crease for eyeshadow.
RIGHT_EYESHADOW = _region("right_eyeshadow", 33, 246, 161, 160, 159, 158, 157, 173, 133)
LEFT_EYESHADOW = _region("left_eyeshadow", 263, 466, 388, 387, 386, 385, 384, 398, 362)

LIPS_OUTER = _region(
    "lips_outer",
    61, 185, 40, 39, 37, 0, 267, 269, 270, 409,
    291, 375, 321, 405, 314, 17, 84, 181, 91, 146,
)
LIPS_INNER = _region(
    "lips_inner",
    78, 191, 80, 81, 82, 13, 312, 311, 310, 415,
    308, 324, 318, 402, 317, 14, 87, 178, 88, 95,
)
# Lower lip halves, used as foundation punch-outs.
LIPS_LOWER_OUTER = _region("lips_lower_outer", 61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291)
LIPS_LOWER_INNER = _region("lips_lower_inner", 78, 95, 88, 178, 87, 14, 317, 402, 318, 324, 308)

FACE_OUTLINE = _region(
    "face_outline",
    10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288,
    397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136,
    172, 58, 132, 93, 234, 127, 162, 21, 54, 103, 67, 109, 10,
)

# Chin, jawline, sideburns and the nose bridge.
BEARD_AREA = _region(
    "beard_area",
    152, 148, 176, 149, 150, 136, 172, 58, 132, 93,
    234, 127, 162, 21, 54, 103, 67, 109, 10, 151, 9, 8, 168, 197, 4,
)
MOUSTACHE_AREA = _region(
    "moustache_area",
    61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291,
    375, 321, 405, 314, 17, 84, 181, 91, 146,
)

FOREHEAD = _region("forehead", 10, 67, 109, 151, 9, 8, 168, 197, 4)

RIGHT_EYEBROW = _region("right_eyebrow", 46, 53, 52, 65, 55, 107, 66, 105, 63, 70)
LEFT_EYEBROW = _region("left_eyebrow", 276, 283, 282, 295, 285, 336, 296, 334, 293, 300)

# Blush centres, right cheek then left cheek.
CHEEKS = _region("cheeks", 50, 280)

REGIONS = {
    region.name: region
    for region in (
        RIGHT_EYE,
        LEFT_EYE,
        RIGHT_EYESHADOW,
        LEFT_EYESHADOW,
        LIPS_OUTER,
        LIPS_INNER,
        LIPS_LOWER_OUTER,
        LIPS_LOWER_INNER,
        FACE_OUTLINE,
        BEARD_AREA,
        MOUSTACHE_AREA,
        FOREHEAD,
        RIGHT_EYEBROW,
        LEFT_EYEBROW,
        CHEEKS,
    )
}
