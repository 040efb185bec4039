"""
Two-frame motion differencing.

Compares each new frame against the previous one, flags pixels whose summed
absolute RGB difference exceeds a fixed threshold, and reports the fraction
of flagged pixels as the motion level.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)

DIFF_THRESHOLD = 50


class MotionSample(NamedTuple):
    x: int
    y: int
    strength: int


class MotionSampleBuffer:
    """Reusable structure-of-arrays store sized to the frame's pixel count."""
    def __init__(self, capacity: int = 0):
        self.capacity = 0
        self.count = 0
        self._xs = np.empty(0, dtype=np.int32)
        self._ys = np.empty(0, dtype=np.int32)
        self._strengths = np.empty(0, dtype=np.int32)
        self.ensure(capacity)

    def ensure(self, capacity: int) -> None:
        if capacity > self.capacity:
            self._xs = np.empty(capacity, dtype=np.int32)
            self._ys = np.empty(capacity, dtype=np.int32)
            self._strengths = np.empty(capacity, dtype=np.int32)
            self.capacity = capacity

    def reset(self) -> None:
        self.count = 0

    def fill(self, xs: np.ndarray, ys: np.ndarray, strengths: np.ndarray) -> None:
        n = int(xs.shape[0])
        self.ensure(n)
        self._xs[:n] = xs
        self._ys[:n] = ys
        self._strengths[:n] = strengths
        self.count = n

    @property
    def xs(self) -> np.ndarray:
        return self._xs[:self.count]

    @property
    def ys(self) -> np.ndarray:
        return self._ys[:self.count]

    @property
    def strengths(self) -> np.ndarray:
        return self._strengths[:self.count]


@dataclass
class MotionResult:
    """Result of one detector invocation.

    `xs`, `ys` and `strengths` are views into the detector's buffer and are
    only valid until the next call to `MotionDetector.detect`. Strength is the
    raw channel-sum difference (0..765); display code clamps it itself.
    """
    level: float
    xs: np.ndarray
    ys: np.ndarray
    strengths: np.ndarray
    width: int
    height: int
    warmup: bool = False
    alert: bool = False

    @property
    def count(self) -> int:
        return int(self.xs.shape[0])

    def samples(self) -> Iterator[MotionSample]:
        for x, y, s in zip(self.xs.tolist(), self.ys.tolist(), self.strengths.tolist()):
            yield MotionSample(x, y, s)

    def copy(self) -> "MotionResult":
        return MotionResult(
            level=self.level,
            xs=self.xs.copy(),
            ys=self.ys.copy(),
            strengths=self.strengths.copy(),
            width=self.width,
            height=self.height,
            warmup=self.warmup,
            alert=self.alert,
        )


def _empty_result(width: int, height: int, warmup: bool) -> MotionResult:
    empty = np.empty(0, dtype=np.int32)
    return MotionResult(level=0.0, xs=empty, ys=empty, strengths=empty,
                        width=width, height=height, warmup=warmup)


class MotionDetector:
    """Owns the previous-frame cache. Call `detect` exactly once per tick."""
    def __init__(self, threshold: int = DIFF_THRESHOLD, alert_level: float = 0.05):
        self.threshold = int(threshold)
        self.alert_level = float(alert_level)
        self._prev: Optional[np.ndarray] = None
        self._buffer = MotionSampleBuffer()

    def reset(self) -> None:
        self._prev = None
        self._buffer.reset()

    @property
    def warmed_up(self) -> bool:
        return self._prev is not None

    def detect(self, frame: np.ndarray) -> MotionResult:
        """Diff `frame` against the cached previous frame, then cache `frame`.

        The first call (or a call after the frame size changed) only primes
        the cache and reports zero motion.
        """
        rgb = np.asarray(frame)[..., :3].astype(np.int16)
        height, width = rgb.shape[:2]
        self._buffer.ensure(width * height)
        self._buffer.reset()

        prev = self._prev
        self._prev = rgb
        if prev is None or prev.shape != rgb.shape:
            if prev is not None:
                logger.debug(f"[motion] frame size changed {prev.shape[:2]} -> {rgb.shape[:2]}; re-priming")
            return _empty_result(width, height, warmup=True)

        diff = np.abs(rgb - prev).sum(axis=2)
        ys, xs = np.nonzero(diff > self.threshold)
        self._buffer.fill(xs, ys, diff[ys, xs])

        level = self._buffer.count / float(width * height)
        result = MotionResult(
            level=level,
            xs=self._buffer.xs,
            ys=self._buffer.ys,
            strengths=self._buffer.strengths,
            width=width,
            height=height,
            alert=level > self.alert_level,
        )
        logger.debug(f"[motion] samples={result.count} level={level:.4f}")
        return result
