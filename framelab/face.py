"""
Face location: resample to the detector's working size, run the detection
capability, and pick a single box.

Selection keeps detections with score > min_score and returns the one with the
largest w*h; on equal area the earliest detection wins. No state is carried
between ticks.
"""
from __future__ import annotations
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple
import logging

import cv2
import numpy as np

from framelab.models import FaceBox

logger = logging.getLogger(__name__)

Detection = Tuple[float, float, float, float, float]


class FaceDetector(Protocol):
    def detect(self, image: np.ndarray) -> Sequence[Detection]:
        ...


class HaarFaceDetector:
    """OpenCV Haar cascade; score is the number of merged neighbor hits."""
    def __init__(self, model_name: str = "haarcascade_frontalface_default",
                 scale_factor: float = 1.1, min_neighbors: int = 1, min_size: int = 20):
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = (int(min_size), int(min_size))
        cascade_path = cv2.data.haarcascades + f"{model_name}.xml"
        self.cascade = cv2.CascadeClassifier(cascade_path)
        if self.cascade.empty():
            raise RuntimeError(f"Failed to load Haar cascade from {cascade_path}")

    @classmethod
    def from_settings(cls, settings) -> "HaarFaceDetector":
        return cls(
            model_name=settings.HAAR_MODEL,
            scale_factor=settings.HAAR_SCALE_FACTOR,
            min_neighbors=settings.HAAR_MIN_NEIGHBORS,
            min_size=settings.HAAR_MIN_SIZE,
        )

    def detect(self, image: np.ndarray) -> List[Detection]:
        if image.ndim == 3 and image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
        elif image.ndim == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        else:
            gray = image
        rects, counts = self.cascade.detectMultiScale2(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=self.min_size,
        )
        return [
            (int(x), int(y), int(w), int(h), float(n))
            for (x, y, w, h), n in zip(rects, np.asarray(counts).reshape(-1))
        ]


def resample(frame: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Resize to (width, height); returns the input untouched when already that size."""
    width, height = size
    if frame.shape[1] == width and frame.shape[0] == height:
        return frame
    return cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)


def _coerce(det) -> Optional[Tuple[float, float, float, float, float]]:
    try:
        x, y, w, h, score = (float(v) for v in det)
    except (TypeError, ValueError):
        return None
    # negative extents are not a rectangle; zero-size boxes still compete
    if not all(np.isfinite([x, y, w, h, score])) or w < 0 or h < 0:
        return None
    return x, y, w, h, score


def select_face(detections: Iterable, min_score: float = 3) -> Optional[FaceBox]:
    """Largest-area detection among those scoring strictly above `min_score`.

    Areas are compared on the raw (possibly fractional) sizes; the published
    box is truncated to whole pixels only after the winner is chosen.
    """
    best = None
    best_area = -1.0
    for det in (detections if detections is not None else []):
        raw = _coerce(det)
        if raw is None:
            logger.debug(f"[face] skipping malformed detection {det!r}")
            continue
        x, y, w, h, score = raw
        if score <= min_score:
            continue
        if w * h > best_area:
            best, best_area = raw, w * h
    if best is None:
        return None
    x, y, w, h, score = best
    return FaceBox(x=int(x), y=int(y), w=int(w), h=int(h), score=score)


class FaceLocator:
    def __init__(self, detector: FaceDetector, working_size: Tuple[int, int] = (160, 120),
                 min_score: float = 3):
        self.detector = detector
        self.working_size = working_size
        self.min_score = min_score

    def locate(self, frame: np.ndarray, working: Optional[np.ndarray] = None) -> Optional[FaceBox]:
        """
        Detect on the working-resolution frame and select one box.

        Args:
            frame: current frame at capture resolution
            working: already-resampled frame, if the caller has one

        Returns:
            FaceBox in working coordinates, or None. Detector faults are
            logged and reported as no face.
        """
        if working is None:
            working = resample(frame, self.working_size)
        try:
            detections = self.detector.detect(working)
            detections = list(detections) if detections is not None else []
        except Exception:
            logger.exception("[face] detector failed; reporting no face")
            return None
        box = select_face(detections, self.min_score)
        logger.debug(f"[face] detections={len(detections)} selected={box}")
        return box
