from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from .models import FaceLandmark, FaceMeta
from .topology import FaceLandmarks

logger = logging.getLogger(__name__)

_FACE_LOCK = threading.Lock()


@dataclass
class DetectionResult:
    """Frame handed to the detector plus zero or more faces found in it."""

    image: np.ndarray
    faces: List[FaceLandmarks] = field(default_factory=list)

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def primary(self) -> Optional[FaceLandmarks]:
        return self.faces[0] if self.faces else None


class FaceMeshDetector:
    """MediaPipe FaceMesh wrapper with thread safety."""

    def __init__(
        self,
        max_num_faces: int = 1,
        refine_landmarks: bool = True,
        selfie_mode: bool = True,
        static_image_mode: bool = False,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> None:
        self.selfie_mode = selfie_mode
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=static_image_mode,
            max_num_faces=max_num_faces,
            refine_landmarks=refine_landmarks,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame: np.ndarray) -> DetectionResult:
        image = cv2.flip(frame, 1) if self.selfie_mode else frame
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        with _FACE_LOCK:
            results = self._mesh.process(rgb)
        faces = [
            FaceLandmarks.from_points((lm.x, lm.y) for lm in face.landmark)
            for face in (results.multi_face_landmarks or [])
        ]
        return DetectionResult(image=image, faces=faces)

    def close(self) -> None:
        self._mesh.close()


def serialize_face(result: DetectionResult) -> Optional[FaceMeta]:
    landmarks = result.primary
    if landmarks is None:
        return None
    pixels = landmarks.projected(result.width, result.height)
    x, y, bw, bh = cv2.boundingRect(pixels.astype(np.float32))
    return FaceMeta(
        bbox=[int(x), int(y), int(bw), int(bh)],
        confidence=1.0,
        landmarks=[FaceLandmark(x=float(pt.x), y=float(pt.y)) for pt in landmarks],
    )
