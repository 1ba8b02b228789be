from __future__ import annotations

import base64
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from .assets import OverlayAsset
from .compositor import FrameContext, MakeupCompositor
from .detector import DetectionResult, FaceMeshDetector, serialize_face
from .geometry import Point
from .models import FaceMeta, MakeupConfig
from .picker import LandmarkPicker
from .surface import Surface
from .topology import FaceLandmarks

logger = logging.getLogger(__name__)


class MakeupPipeline:
    """Still-image compositing plus the picker state shared by the HTTP API."""

    def __init__(
        self,
        detector: Optional[FaceMeshDetector] = None,
        overlay: Optional[OverlayAsset] = None,
        refine_landmarks: bool = True,
    ) -> None:
        self._detector = detector
        self.refine_landmarks = refine_landmarks
        self.overlay = overlay
        self.picker = LandmarkPicker()
        self._landmarks: Optional[FaceLandmarks] = None
        self._size: Tuple[int, int] = (0, 0)

    @property
    def detector(self) -> FaceMeshDetector:
        if self._detector is None:
            self._detector = FaceMeshDetector(
                max_num_faces=1,
                refine_landmarks=self.refine_landmarks,
                selfie_mode=False,
                static_image_mode=True,
            )
        return self._detector

    @property
    def last_landmarks(self) -> Optional[FaceLandmarks]:
        return self._landmarks

    def _run(self, image: np.ndarray, config: MakeupConfig) -> Tuple[Surface, DetectionResult, Optional[FrameContext]]:
        result = self.detector.detect(image)
        surface = Surface(result.width, result.height)
        overlay = None
        if self.overlay is not None and self.overlay.load():
            overlay = self.overlay.image
        context = MakeupCompositor(config).composite(surface, result, overlay)
        if context is not None:
            self._landmarks = context.landmarks
            self._size = (context.width, context.height)
        return surface, result, context

    def apply(
        self, image: np.ndarray, config: MakeupConfig
    ) -> Tuple[np.ndarray, Optional[FaceMeta], Optional[str]]:
        surface, result, context = self._run(image, config)
        skin_tone = context.skin_tone.hex if context is not None else None
        return surface.to_bgr(), serialize_face(result), skin_tone

    def analyze(self, image: np.ndarray) -> Tuple[Optional[FaceMeta], Optional[str]]:
        _, result, context = self._run(image, MakeupConfig(enabled=[]))
        skin_tone = context.skin_tone.hex if context is not None else None
        return serialize_face(result), skin_tone

    def pick(self, x: float, y: float) -> Optional[int]:
        width, height = self._size
        return self.picker.pick(Point(x, y), self._landmarks, width, height)

    @staticmethod
    def encode_image(image: np.ndarray) -> str:
        success, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), 95])
        if not success:
            raise ValueError("Failed to encode image")
        return "data:image/jpeg;base64," + base64.b64encode(buffer).decode("utf-8")
