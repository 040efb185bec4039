"""
Pydantic data models shared by the pipeline and the API.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional, Literal

from pydantic import BaseModel, Field, field_validator


class SnapshotMode(str, Enum):
    LIVE = "live"
    FROZEN = "frozen"


class FaceFilterMode(str, Enum):
    """Post-filter applied to the frozen face region."""
    NONE = "none"
    GRAYSCALE = "grayscale"
    BLUR = "blur"
    HSV = "hsv"
    PIXELATE = "pixelate"

    @classmethod
    def from_key(cls, key: str) -> Optional["FaceFilterMode"]:
        """Map the digit keys 0..4 onto filter modes; anything else -> None."""
        order = list(cls)
        if len(key) == 1 and key.isdigit() and int(key) < len(order):
            return order[int(key)]
        return None


class Region(BaseModel):
    x: int
    y: int
    w: int
    h: int


class FaceBox(Region):
    score: float = 0.0

    @property
    def area(self) -> int:
        return self.w * self.h


class Thresholds(BaseModel):
    """Five independent slider thresholds, each in [0, 255]."""
    red: int = Field(default=128, ge=0, le=255)
    green: int = Field(default=128, ge=0, le=255)
    blue: int = Field(default=128, ge=0, le=255)
    cmy: int = Field(default=128, ge=0, le=255)
    hsv: int = Field(default=128, ge=0, le=255)

    @classmethod
    def uniform(cls, value: int) -> "Thresholds":
        v = max(0, min(255, int(value)))
        return cls(red=v, green=v, blue=v, cmy=v, hsv=v)


class ThresholdUpdate(BaseModel):
    """Partial threshold update; out-of-range values are clamped."""
    red: Optional[int] = None
    green: Optional[int] = None
    blue: Optional[int] = None
    cmy: Optional[int] = None
    hsv: Optional[int] = None

    @field_validator("*")
    @classmethod
    def _clamp(cls, v):
        if v is None:
            return v
        return max(0, min(255, int(v)))


# API IO models


class MotionSummary(BaseModel):
    level: float
    count: int
    alert: bool
    warmup: bool = False


class TickSummary(BaseModel):
    tick: int
    mode: SnapshotMode
    filter_mode: FaceFilterMode
    motion: MotionSummary
    face_box: Optional[FaceBox] = None
    face_label: Optional[Literal["Face Detected"]] = None
    filtered_face: Optional[Region] = None


class StatusResponse(BaseModel):
    mode: SnapshotMode
    filter_mode: FaceFilterMode
    thresholds: Thresholds
    last_tick: Optional[TickSummary] = None
