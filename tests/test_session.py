import asyncio
import threading

import numpy as np
import pytest

from makeup_mirror import session as session_module
from makeup_mirror.session import CameraSource, CaptureDeviceError, LiveSession


class FakeSource:
    def __init__(self, frame):
        self.frame = frame
        self.opened = False
        self.released = 0
        self.read_threads = []

    def open(self):
        self.opened = True

    def read(self):
        self.read_threads.append(threading.get_ident())
        return self.frame.copy()

    def release(self):
        self.released += 1


class FakeCapture:
    def __init__(self, index, opened=True):
        self.index = index
        self.opened = opened
        self.released = False

    def isOpened(self):
        return self.opened

    def read(self):
        return False, None

    def release(self):
        self.released = True


def make_session(frame_factory, detector, **kwargs):
    presented = []
    live = LiveSession(
        FakeSource(frame_factory(100, 100, (30, 60, 90))),
        detector,
        present=presented.append,
        **kwargs,
    )
    return live, presented


def test_step_presents_and_remembers_landmarks(frame_factory, landmarks_factory, fake_detector_factory):
    landmarks = landmarks_factory({42: (0.1, 0.1)})
    live, presented = make_session(frame_factory, fake_detector_factory([landmarks]))

    assert asyncio.run(live.step()) is True

    assert len(presented) == 1
    assert presented[0].shape == (100, 100, 3)
    assert live.last_landmarks is landmarks
    live.set_capture(True)
    assert live.pick(10, 10) == 42
    assert live.picker.captured == [42]


def test_step_without_face_presents_raw_frame(frame_factory, fake_detector_factory):
    live, presented = make_session(frame_factory, fake_detector_factory())

    asyncio.run(live.step())

    assert np.array_equal(presented[0], frame_factory(100, 100, (30, 60, 90)))
    assert live.last_landmarks is None
    assert live.pick(5, 5) is None


def test_frozen_loop_renders_only_the_countdown(frame_factory, landmarks_factory, fake_detector_factory):
    detector = fake_detector_factory([landmarks_factory()])
    ticks = []

    def poll():
        ticks.append(len(presented))
        if len(ticks) == 1:
            live.set_live(False)
        if len(ticks) == 10:
            live.stop()

    live, presented = make_session(frame_factory, detector, poll=poll, fps=1000, freeze_after=2)

    asyncio.run(live.run())

    # One live frame, then exactly two more after tracking was switched off.
    assert len(presented) == 3
    assert len(detector.frames) == 3
    assert len(ticks) == 10
    assert live.closed
    assert live.source.opened and live.source.released >= 1


def test_result_arriving_after_stop_is_discarded(frame_factory, fake_detector_factory):
    class StoppingDetector(fake_detector_factory):
        def detect(self, frame):
            live.stop()
            return super().detect(frame)

    live, presented = make_session(frame_factory, StoppingDetector())

    assert asyncio.run(live.step()) is False
    assert presented == []


def test_camera_open_failure(monkeypatch):
    monkeypatch.setattr(session_module.cv2, "VideoCapture", lambda index: FakeCapture(index, opened=False))
    with pytest.raises(CaptureDeviceError):
        CameraSource(3).open()


def test_camera_read_failures_surface_after_limit(monkeypatch):
    monkeypatch.setattr(session_module.cv2, "VideoCapture", FakeCapture)
    source = CameraSource(0, max_read_failures=3)
    source.open()

    assert source.read() is None
    assert source.read() is None
    with pytest.raises(CaptureDeviceError):
        source.read()


def test_camera_read_before_open_fails():
    with pytest.raises(CaptureDeviceError):
        CameraSource(0).read()


def test_run_propagates_open_failure(monkeypatch, fake_detector_factory):
    monkeypatch.setattr(session_module.cv2, "VideoCapture", lambda index: FakeCapture(index, opened=False))
    live = LiveSession(CameraSource(0), fake_detector_factory())
    with pytest.raises(CaptureDeviceError):
        asyncio.run(live.run())


def test_camera_read_runs_off_the_event_loop(frame_factory, fake_detector_factory):
    live, presented = make_session(frame_factory, fake_detector_factory())

    asyncio.run(live.step())

    assert len(presented) == 1
    assert live.source.read_threads
    assert threading.get_ident() not in live.source.read_threads
