# framelab/pipeline.py
"""
Per-tick controller.

One tick: apply queued commands -> sample the snapshot mode -> run the display
kernels -> run motion detection once -> either locate a face (LIVE) or filter
the frozen face region (FROZEN).
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple
import logging
import threading

import numpy as np

from framelab import kernels
from framelab.capture import CaptureSource, FrameSource
from framelab.compositor import FaceRegionCompositor, FilteredRegion
from framelab.config import Settings
from framelab.face import FaceDetector, FaceLocator, HaarFaceDetector, resample
from framelab.kernels import Channel
from framelab.models import (
    FaceBox, FaceFilterMode, MotionSummary, SnapshotMode, StatusResponse,
    Thresholds, ThresholdUpdate, TickSummary,
)
from framelab.motion import MotionDetector, MotionResult
from framelab.snapshot import SnapshotStateMachine

logger = logging.getLogger(__name__)

FACE_LABEL = "Face Detected"

OUTPUT_NAMES = (
    "grayscale",
    "red", "green", "blue",
    "red_threshold", "green_threshold", "blue_threshold",
    "cmy", "hsv",
    "cmy_threshold", "hsv_threshold",
)


def run_kernels(src: np.ndarray, thresholds: Thresholds) -> Dict[str, np.ndarray]:
    """All display transforms for one source frame. No ordering between them."""
    return {
        "grayscale": kernels.grayscale(src),
        "red": kernels.isolate_channel(src, Channel.RED),
        "green": kernels.isolate_channel(src, Channel.GREEN),
        "blue": kernels.isolate_channel(src, Channel.BLUE),
        "red_threshold": kernels.threshold_channel(src, Channel.RED, thresholds.red),
        "green_threshold": kernels.threshold_channel(src, Channel.GREEN, thresholds.green),
        "blue_threshold": kernels.threshold_channel(src, Channel.BLUE, thresholds.blue),
        "cmy": kernels.cmy(src),
        "hsv": kernels.hsv(src),
        "cmy_threshold": kernels.cmy_threshold(src, thresholds.cmy),
        "hsv_threshold": kernels.hsv_threshold(src, thresholds.hsv),
    }


@dataclass
class TickContext:
    """Everything one tick is allowed to read, fixed at tick start."""
    tick: int
    frame: np.ndarray
    thresholds: Thresholds
    filter_mode: FaceFilterMode
    working_size: Tuple[int, int]
    mode: SnapshotMode = SnapshotMode.LIVE
    _working: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def working(self) -> np.ndarray:
        if self._working is None:
            self._working = resample(self.frame, self.working_size)
        return self._working


@dataclass
class TickOutputs:
    tick: int
    mode: SnapshotMode
    filter_mode: FaceFilterMode
    frames: Dict[str, np.ndarray]
    motion: MotionResult
    face_box: Optional[FaceBox] = None
    snapshot: Optional[np.ndarray] = None
    filtered_face: Optional[FilteredRegion] = None

    @property
    def face_label(self) -> Optional[str]:
        return FACE_LABEL if self.face_box is not None else None

    def frame(self, name: str) -> Optional[np.ndarray]:
        if name == "snapshot":
            return self.snapshot
        if name == "filtered_face":
            return self.filtered_face.image if self.filtered_face is not None else None
        return self.frames.get(name)

    def summary(self) -> TickSummary:
        return TickSummary(
            tick=self.tick,
            mode=self.mode,
            filter_mode=self.filter_mode,
            motion=MotionSummary(
                level=self.motion.level,
                count=self.motion.count,
                alert=self.motion.alert,
                warmup=self.motion.warmup,
            ),
            face_box=self.face_box,
            face_label=self.face_label,
            filtered_face=self.filtered_face.region if self.filtered_face is not None else None,
        )


class FrameProcessor:
    """
    Owns the motion detector, face locator, snapshot state and the external
    parameters. Commands are queued and only take effect at the next tick.
    """
    def __init__(self, settings: Settings, detector: Optional[FaceDetector] = None,
                 thresholds: Optional[Thresholds] = None):
        self.s = settings
        if detector is None:
            detector = HaarFaceDetector.from_settings(settings)
        self.motion = MotionDetector(settings.MOTION_DIFF_THRESHOLD, settings.MOTION_ALERT_LEVEL)
        self.locator = FaceLocator(detector, settings.detect_size, settings.FACE_MIN_SCORE)
        self.snapshot = SnapshotStateMachine()
        self.compositor = FaceRegionCompositor(settings.BLUR_RADIUS, settings.PIXELATE_BLOCK)
        self.thresholds = thresholds or Thresholds.uniform(settings.DEFAULT_THRESHOLD)
        self.filter_mode = FaceFilterMode.NONE

        self._commands: Deque[tuple] = deque()
        self._lock = threading.Lock()
        self._tick = 0
        self._live_box: Optional[FaceBox] = None
        self._last: Optional[TickOutputs] = None

    # ---- commands (applied at next tick boundary) ----
    def toggle_snapshot(self) -> None:
        with self._lock:
            self._commands.append(("toggle",))

    def select_filter(self, mode: FaceFilterMode) -> None:
        with self._lock:
            self._commands.append(("filter", FaceFilterMode(mode)))

    def set_thresholds(self, **values) -> None:
        update = ThresholdUpdate(**values).model_dump(exclude_none=True)
        with self._lock:
            self._commands.append(("thresholds", update))

    def _drain(self) -> List[tuple]:
        with self._lock:
            pending = list(self._commands)
            self._commands.clear()
        return pending

    def _apply_commands(self, ctx: TickContext) -> None:
        for cmd in self._drain():
            kind = cmd[0]
            if kind == "toggle":
                mode = self.snapshot.toggle(ctx.working, self._live_box)
                # the discarded box never comes back after unfreeze
                self._live_box = None
                logger.debug(f"[pipeline] tick={ctx.tick} snapshot -> {mode.value}")
            elif kind == "filter":
                self.filter_mode = cmd[1]
            elif kind == "thresholds":
                self.thresholds = self.thresholds.model_copy(update=cmd[1])

    # ---- tick ----
    @property
    def last_outputs(self) -> Optional[TickOutputs]:
        return self._last

    def process(self, frame: np.ndarray) -> TickOutputs:
        """Run one tick on an RGBA frame and publish the outputs."""
        self._tick += 1
        ctx = TickContext(
            tick=self._tick,
            frame=np.asarray(frame),
            thresholds=self.thresholds,
            filter_mode=self.filter_mode,
            working_size=self.s.detect_size,
        )
        self._apply_commands(ctx)
        ctx.thresholds = self.thresholds.model_copy()
        ctx.filter_mode = self.filter_mode
        ctx.mode = self.snapshot.mode

        frozen = ctx.mode == SnapshotMode.FROZEN
        src = self.snapshot.frozen_frame if frozen else ctx.frame
        frames = run_kernels(src, ctx.thresholds)

        motion = self.motion.detect(ctx.frame)

        filtered = None
        if frozen:
            box = self.snapshot.frozen_face_box
            filtered = self.compositor.compose(self.snapshot.frozen_frame, box, ctx.filter_mode)
        else:
            box = self.locator.locate(ctx.frame, ctx.working)
            self._live_box = box

        out = TickOutputs(
            tick=ctx.tick,
            mode=ctx.mode,
            filter_mode=ctx.filter_mode,
            frames=frames,
            motion=motion,
            face_box=box.model_copy() if box is not None else None,
            snapshot=self.snapshot.frozen_frame,
            filtered_face=filtered,
        )
        self._last = out
        logger.debug(
            f"[pipeline] tick={ctx.tick} mode={ctx.mode.value} motion={motion.level:.4f} "
            f"box={out.face_box} filtered={filtered is not None}"
        )
        return out

    def run_once(self, source: FrameSource) -> Optional[TickOutputs]:
        """Pull one frame and process it; on no frame keep the last outputs."""
        try:
            frame = source.pull()
        except Exception:
            logger.exception("[pipeline] frame acquisition failed; skipping tick")
            frame = None
        if frame is None:
            logger.debug("[pipeline] no frame; skipping tick")
            return self._last
        return self.process(frame)

    def status(self) -> StatusResponse:
        return StatusResponse(
            mode=self.snapshot.mode,
            filter_mode=self.filter_mode,
            thresholds=self.thresholds,
            last_tick=self._last.summary() if self._last is not None else None,
        )


def analyze_video(video_path: str, settings: Settings,
                  detector: Optional[FaceDetector] = None) -> List[Dict]:
    """
    Run every frame of a video file through the pipeline and return the
    per-tick summaries (JSON-ready dicts).
    """
    logger.debug(f"[pipeline] analyze_video start video_path={video_path}")
    processor = FrameProcessor(settings, detector)
    summaries: List[Dict] = []
    with CaptureSource(video_path, settings.capture_size) as source:
        while True:
            frame = source.pull()
            if frame is None:
                break
            out = processor.process(frame)
            summaries.append(out.summary().model_dump(mode="json"))
    logger.debug(f"[pipeline] analyze_video finished; ticks={len(summaries)}")
    return summaries
