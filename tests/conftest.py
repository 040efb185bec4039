import numpy as np
import pytest

from framelab.config import Settings


class DummyDetector:
    """Returns a scripted list of detections per call."""
    def __init__(self, script=None):
        self.script = list(script or [])
        self.calls = 0
        self.shapes = []

    def detect(self, image):
        self.calls += 1
        self.shapes.append(image.shape)
        if not self.script:
            return []
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def make_detector():
    return DummyDetector


@pytest.fixture
def make_frame():
    def _make(w=320, h=240, rgb=(0, 0, 0)):
        frame = np.zeros((h, w, 4), dtype=np.uint8)
        frame[..., :3] = rgb
        frame[..., 3] = 255
        return frame
    return _make


@pytest.fixture
def random_frame():
    rng = np.random.default_rng(7)
    frame = rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8)
    frame[..., 3] = 255
    return frame
