"""Live/Frozen snapshot state machine."""
from __future__ import annotations
from typing import Optional
import logging

import numpy as np

from framelab.models import FaceBox, SnapshotMode

logger = logging.getLogger(__name__)


class SnapshotStateMachine:
    """
    Command-driven toggle between LIVE and FROZEN.

    The frozen frame and frozen face box are set together on freeze and
    cleared together on unfreeze. A frozen frame without a box is valid
    (nothing was detected at capture time).
    """
    def __init__(self):
        self.mode = SnapshotMode.LIVE
        self.frozen_frame: Optional[np.ndarray] = None
        self.frozen_face_box: Optional[FaceBox] = None

    def is_live(self) -> bool:
        return self.mode == SnapshotMode.LIVE

    def is_frozen(self) -> bool:
        return self.mode == SnapshotMode.FROZEN

    def freeze(self, working_frame: np.ndarray, live_box: Optional[FaceBox]) -> None:
        """Copy the working frame and the live box (by value) into frozen storage."""
        self.frozen_frame = np.array(working_frame, copy=True)
        self.frozen_face_box = live_box.model_copy() if live_box is not None else None
        self._transition_to(SnapshotMode.FROZEN)

    def unfreeze(self) -> None:
        self.frozen_frame = None
        self.frozen_face_box = None
        self._transition_to(SnapshotMode.LIVE)

    def toggle(self, working_frame: np.ndarray, live_box: Optional[FaceBox]) -> SnapshotMode:
        if self.is_live():
            self.freeze(working_frame, live_box)
        else:
            self.unfreeze()
        return self.mode

    def reset(self) -> None:
        self.unfreeze()

    def _transition_to(self, new_mode: SnapshotMode) -> None:
        if new_mode != self.mode:
            logger.info(f"[snapshot] {self.mode.name} -> {new_mode.name} box={self.frozen_face_box}")
            self.mode = new_mode
