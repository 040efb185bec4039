# framelab/live.py
"""
Live camera window.

Drives the FrameProcessor from the webcam and shows every output in a single
mosaic window. Controls:
- trackbars: red / green / blue / cmy / hsv thresholds
- space: take a snap (freeze) / go back live
- 0..4: face filter none / grayscale / blur / hsv / pixelate
- q: quit
"""
from __future__ import annotations

import logging
from typing import Optional

import cv2

from framelab.capture import CaptureSource
from framelab.config import Settings
from framelab.face import FaceDetector
from framelab.models import FaceFilterMode
from framelab.pipeline import FrameProcessor
from framelab.visual import compose_mosaic

logger = logging.getLogger(__name__)

WINDOW = "Frame Lab (q to quit)"
TRACKBARS = ("red", "green", "blue", "cmy", "hsv")


def _read_trackbars() -> dict:
    return {name: cv2.getTrackbarPos(name, WINDOW) for name in TRACKBARS}


def handle_key(processor: FrameProcessor, key: int) -> bool:
    """Translate a key press into a command. Returns False when the loop should stop."""
    if key < 0:
        return True
    ch = chr(key & 0xFF)
    if ch == "q":
        return False
    if ch == " ":
        processor.toggle_snapshot()
    else:
        mode = FaceFilterMode.from_key(ch)
        if mode is not None:
            processor.select_filter(mode)
    return True


def run_live_overlay(settings: Settings, camera_index: Optional[int] = None,
                     detector: Optional[FaceDetector] = None) -> None:
    """Open the webcam and run the tick loop until 'q' or the camera runs dry."""
    cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    source = CaptureSource(cam_idx, settings.capture_size)
    processor = FrameProcessor(settings, detector)

    cv2.namedWindow(WINDOW)
    for name in TRACKBARS:
        cv2.createTrackbar(name, WINDOW, settings.DEFAULT_THRESHOLD, 255, lambda _v: None)

    ticks = 0
    try:
        while True:
            frame = source.pull()
            if frame is None:
                break
            processor.set_thresholds(**_read_trackbars())
            outputs = processor.process(frame)
            ticks += 1
            cv2.imshow(WINDOW, compose_mosaic(outputs, frame))
            if not handle_key(processor, cv2.waitKey(1)):
                break
    finally:
        source.release()
        cv2.destroyAllWindows()
    logger.info(f"[live] stopped after {ticks} ticks")
