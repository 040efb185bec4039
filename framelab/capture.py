"""
Frame acquisition via OpenCV.

`pull()` returns an RGBA frame at the configured capture size, or None when
the device/file has nothing to give (the caller skips that tick).
"""
from __future__ import annotations
from typing import Optional, Protocol, Tuple, Union
import logging
import os

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def pull(self) -> Optional[np.ndarray]:
        ...


def bgr_to_rgba(frame: np.ndarray, size: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """Convert an OpenCV BGR/BGRA/gray image to RGBA, optionally resizing to (w, h)."""
    if size is not None and (frame.shape[1], frame.shape[0]) != tuple(size):
        frame = cv2.resize(frame, tuple(size), interpolation=cv2.INTER_AREA)
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)


def rgba_to_bgr(frame: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(np.ascontiguousarray(frame), cv2.COLOR_RGBA2BGR)


class CaptureSource:
    """Camera index or video file path behind a `pull()` interface."""
    def __init__(self, source: Union[int, str], size: Tuple[int, int] = (320, 240)):
        if isinstance(source, str) and not os.path.exists(source):
            raise FileNotFoundError(f"Video not found: {source}")
        self.source = source
        self.size = size
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise RuntimeError(f"Could not open capture source {source}")
        if isinstance(source, int):
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, size[0])
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, size[1])

    def pull(self) -> Optional[np.ndarray]:
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        return bgr_to_rgba(frame, self.size)

    def release(self) -> None:
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
