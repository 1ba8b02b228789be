"""
Webcam mirror: python -m makeup_mirror.live

Keys: l = toggle live tracking, c = toggle capture mode, q / Esc = quit.
Click on the face to pick the nearest landmark.
"""
from __future__ import annotations

import asyncio
import logging
import sys

import cv2

from .assets import OverlayAsset
from .compositor import MakeupCompositor
from .config import get_settings
from .detector import FaceMeshDetector
from .session import CameraSource, CaptureDeviceError, LiveSession

logger = logging.getLogger(__name__)

WINDOW_NAME = "makeup-mirror"


class WindowControls:
    """Keyboard and mouse bindings for the OpenCV preview window."""

    def __init__(self, session: LiveSession) -> None:
        self.session = session

    def present(self, image) -> None:
        cv2.imshow(WINDOW_NAME, image)

    def poll(self) -> None:
        key = cv2.waitKey(1) & 0xFF
        if key in (ord("q"), 27):
            self.session.stop()
        elif key == ord("l"):
            self.session.set_live(not self.session.tracking.live)
        elif key == ord("c"):
            self.session.set_capture(not self.session.picker.capturing)

    def on_mouse(self, event: int, x: int, y: int, flags: int, param) -> None:
        if event == cv2.EVENT_LBUTTONDOWN:
            self.session.pick(x, y)


def main() -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    detector = FaceMeshDetector(
        max_num_faces=1,
        refine_landmarks=settings.refine_landmarks,
        selfie_mode=settings.selfie_mode,
    )
    session = LiveSession(
        source=CameraSource(settings.camera_index, settings.max_read_failures),
        detector=detector,
        compositor=MakeupCompositor(),
        overlay=OverlayAsset(settings.lash_asset),
        fps=settings.fps,
        freeze_after=settings.freeze_after,
    )
    controls = WindowControls(session)
    session.present = controls.present
    session.poll = controls.poll

    cv2.namedWindow(WINDOW_NAME)
    cv2.setMouseCallback(WINDOW_NAME, controls.on_mouse)
    try:
        asyncio.run(session.run())
    except CaptureDeviceError as exc:
        logger.error(f"Capture device failure: {exc}")
        return 1
    except KeyboardInterrupt:
        session.stop()
    finally:
        detector.close()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    sys.exit(main())
