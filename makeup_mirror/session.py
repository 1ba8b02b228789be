from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import cv2
import numpy as np

from .assets import OverlayAsset
from .compositor import MakeupCompositor, TrackingState
from .detector import FaceMeshDetector
from .geometry import Point
from .picker import LandmarkPicker
from .surface import Surface
from .topology import FaceLandmarks

logger = logging.getLogger(__name__)


class CaptureDeviceError(RuntimeError):
    """The frame source could not be opened or stopped delivering frames."""


class CameraSource:
    """OpenCV video capture that reports persistent failure instead of spinning."""

    def __init__(self, index: int = 0, max_read_failures: int = 30) -> None:
        self.index = index
        self.max_read_failures = max_read_failures
        self._capture: Optional[cv2.VideoCapture] = None
        self._failures = 0

    def open(self) -> None:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CaptureDeviceError(f"Could not open camera {self.index}")
        self._capture = capture
        self._failures = 0
        logger.info("Opened camera %d", self.index)

    def read(self) -> Optional[np.ndarray]:
        """Next frame, or None while the device is not ready yet."""
        if self._capture is None:
            raise CaptureDeviceError("Camera is not open")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            self._failures += 1
            if self._failures >= self.max_read_failures:
                raise CaptureDeviceError(
                    f"Camera {self.index} failed {self._failures} consecutive reads"
                )
            return None
        self._failures = 0
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Released camera %d", self.index)


class LiveSession:
    """Per-frame loop: read, detect, composite, present, wait for the next tick.

    Exactly one frame is in flight. ``poll`` runs once per tick, also while
    frozen, so UI events keep flowing when no new passes are issued.
    """

    def __init__(
        self,
        source: CameraSource,
        detector: FaceMeshDetector,
        compositor: Optional[MakeupCompositor] = None,
        present: Optional[Callable[[np.ndarray], None]] = None,
        poll: Optional[Callable[[], None]] = None,
        overlay: Optional[OverlayAsset] = None,
        fps: float = 30.0,
        freeze_after: int = 10,
    ) -> None:
        self.source = source
        self.detector = detector
        self.compositor = compositor or MakeupCompositor()
        self.present = present
        self.poll = poll
        self.overlay = overlay
        self.interval = 1.0 / fps
        self.surface = Surface()
        self.tracking = TrackingState(freeze_after=freeze_after)
        self.picker = LandmarkPicker()
        self._landmarks: Optional[FaceLandmarks] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_landmarks(self) -> Optional[FaceLandmarks]:
        return self._landmarks

    def set_live(self, live: bool) -> None:
        self.tracking.set_live(live)
        logger.info("Live tracking %s", "on" if live else f"off, {self.tracking.remaining} frames left")

    def set_capture(self, enabled: bool) -> None:
        self.picker.set_capture(enabled)
        logger.info("Capture mode %s", "on" if enabled else "off")

    def pick(self, x: float, y: float) -> Optional[int]:
        return self.picker.pick(Point(x, y), self._landmarks, self.surface.width, self.surface.height)

    async def step(self) -> bool:
        """One compositing pass; False when nothing was presented."""
        frame = await asyncio.to_thread(self.source.read)
        if frame is None:
            return False
        result = await asyncio.to_thread(self.detector.detect, frame)
        if self._closed:
            logger.debug("Discarding detection result that arrived after teardown")
            return False
        overlay = self.overlay.image if self.overlay is not None else None
        context = self.compositor.composite(self.surface, result, overlay)
        if context is not None:
            self._landmarks = context.landmarks
        if self.present is not None:
            self.present(self.surface.to_bgr())
        self.tracking.frame_rendered()
        return True

    async def run(self) -> None:
        self.source.open()
        if self.overlay is not None:
            self.overlay.load()
        try:
            while not self._closed:
                if self.tracking.should_render():
                    await self.step()
                if self.poll is not None:
                    self.poll()
                await asyncio.sleep(self.interval)
        finally:
            self.stop()

    def stop(self) -> None:
        if not self._closed:
            logger.info("Stopping live session")
        self._closed = True
        self.source.release()
