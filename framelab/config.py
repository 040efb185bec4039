"""
Configuration for the frame processing pipeline.
"""
import logging
import os

from pydantic import BaseModel


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    CAPTURE_WIDTH: int = int(os.getenv("CAPTURE_WIDTH", "320"))
    CAPTURE_HEIGHT: int = int(os.getenv("CAPTURE_HEIGHT", "240"))

    # detector working resolution; frozen snapshots are kept at this size too
    DETECT_WIDTH: int = int(os.getenv("DETECT_WIDTH", "160"))
    DETECT_HEIGHT: int = int(os.getenv("DETECT_HEIGHT", "120"))

    FACE_MIN_SCORE: float = float(os.getenv("FACE_MIN_SCORE", "3"))
    HAAR_MODEL: str = os.getenv("HAAR_MODEL", "haarcascade_frontalface_default")
    HAAR_SCALE_FACTOR: float = float(os.getenv("HAAR_SCALE_FACTOR", "1.1"))
    HAAR_MIN_NEIGHBORS: int = int(os.getenv("HAAR_MIN_NEIGHBORS", "1"))
    HAAR_MIN_SIZE: int = int(os.getenv("HAAR_MIN_SIZE", "20"))

    MOTION_DIFF_THRESHOLD: int = int(os.getenv("MOTION_DIFF_THRESHOLD", "50"))
    MOTION_ALERT_LEVEL: float = float(os.getenv("MOTION_ALERT_LEVEL", "0.05"))

    BLUR_RADIUS: int = int(os.getenv("BLUR_RADIUS", "4"))
    PIXELATE_BLOCK: int = int(os.getenv("PIXELATE_BLOCK", "5"))

    DEFAULT_THRESHOLD: int = int(os.getenv("DEFAULT_THRESHOLD", "128"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize LOG_LEVEL: strip extra words, upper-case, validate
        level = ((self.LOG_LEVEL or "").strip().split() or ["INFO"])[0].upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        object.__setattr__(self, "LOG_LEVEL", level)

        # Sizes must be positive; thresholds live in byte range
        for name in ("CAPTURE_WIDTH", "CAPTURE_HEIGHT", "DETECT_WIDTH", "DETECT_HEIGHT",
                     "BLUR_RADIUS", "PIXELATE_BLOCK"):
            object.__setattr__(self, name, max(1, int(getattr(self, name))))
        object.__setattr__(self, "DEFAULT_THRESHOLD", max(0, min(255, int(self.DEFAULT_THRESHOLD))))
        object.__setattr__(self, "MOTION_DIFF_THRESHOLD", max(0, min(765, int(self.MOTION_DIFF_THRESHOLD))))

    @property
    def capture_size(self) -> tuple[int, int]:
        return self.CAPTURE_WIDTH, self.CAPTURE_HEIGHT

    @property
    def detect_size(self) -> tuple[int, int]:
        return self.DETECT_WIDTH, self.DETECT_HEIGHT
