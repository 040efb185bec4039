import numpy as np

import framelab.live as live
from framelab.config import Settings
from framelab.models import FaceFilterMode


class DummyCap:
    def __init__(self):
        self.i = 0
    def isOpened(self): return True
    def set(self, *a): return True
    def read(self):
        self.i += 1
        if self.i > 10:
            return False, None
        return True, np.full((240, 320, 3), self.i * 20, dtype=np.uint8)
    def release(self): pass


class DummyDetector:
    def detect(self, image):
        return [(8, 8, 20, 20, 5)]


def _patch_window(monkeypatch, keys):
    shown = []
    monkeypatch.setattr(live.cv2, "namedWindow", lambda *a, **k: None)
    monkeypatch.setattr(live.cv2, "createTrackbar", lambda *a, **k: None)
    monkeypatch.setattr(live.cv2, "getTrackbarPos", lambda name, win: 100)
    monkeypatch.setattr(live.cv2, "imshow", lambda name, img: shown.append(img.shape))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)
    it = iter(keys)
    monkeypatch.setattr(live.cv2, "waitKey", lambda d: next(it, -1))
    return shown


def test_run_live_overlay_until_q(monkeypatch):
    import framelab.capture as capture
    monkeypatch.setattr(capture.cv2, "VideoCapture", lambda idx: DummyCap())
    shown = _patch_window(monkeypatch, [-1, ord(" "), ord("4"), ord("q")])

    live.run_live_overlay(Settings(), camera_index=0, detector=DummyDetector())
    assert len(shown) == 4
    assert shown[0] == (600, 480, 3)


def test_run_live_overlay_stops_when_camera_dry(monkeypatch):
    import framelab.capture as capture
    monkeypatch.setattr(capture.cv2, "VideoCapture", lambda idx: DummyCap())
    shown = _patch_window(monkeypatch, [])
    live.run_live_overlay(Settings(), camera_index=0, detector=DummyDetector())
    assert len(shown) == 10


def test_handle_key():
    calls = []
    class Proc:
        def toggle_snapshot(self): calls.append("toggle")
        def select_filter(self, mode): calls.append(mode)
    p = Proc()
    assert live.handle_key(p, -1)
    assert live.handle_key(p, ord(" "))
    assert live.handle_key(p, ord("2"))
    assert live.handle_key(p, ord("x"))
    assert not live.handle_key(p, ord("q"))
    assert calls == ["toggle", FaceFilterMode.BLUR]
