"""
Face-region filters for frozen snapshots.

The face box is clamped to the snapshot, the sub-image is cut out and one of
the FaceFilterMode filters is applied. The caller pastes the result back at
the clamped box's offset.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import logging

import numpy as np

from framelab import kernels
from framelab.models import FaceBox, FaceFilterMode, Region

logger = logging.getLogger(__name__)

BLUR_RADIUS = 4
PIXELATE_BLOCK = 5


@dataclass
class FilteredRegion:
    x: int
    y: int
    image: np.ndarray
    mode: FaceFilterMode

    @property
    def region(self) -> Region:
        h, w = self.image.shape[:2]
        return Region(x=self.x, y=self.y, w=w, h=h)


def clamp_box(box: FaceBox, width: int, height: int) -> Optional[Tuple[int, int, int, int]]:
    """Intersect the box with the frame; returns (x0, y0, x1, y1) or None if empty."""
    x0 = max(0, min(int(box.x), width))
    y0 = max(0, min(int(box.y), height))
    x1 = max(0, min(int(box.x) + int(box.w), width))
    y1 = max(0, min(int(box.y) + int(box.h), height))
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def box_blur(image: np.ndarray, radius: int = BLUR_RADIUS) -> np.ndarray:
    """Mean of the in-bounds (2r+1)^2 neighborhood; edges average fewer pixels."""
    rgb = np.asarray(image)[..., :3].astype(np.int64)
    h, w = rgb.shape[:2]
    r = max(0, int(radius))

    # integral image with a zero row/column in front
    integral = np.zeros((h + 1, w + 1, 3), dtype=np.int64)
    integral[1:, 1:] = rgb.cumsum(axis=0).cumsum(axis=1)

    ys = np.arange(h)
    xs = np.arange(w)
    y0 = np.clip(ys - r, 0, h)[:, None]
    y1 = np.clip(ys + r + 1, 0, h)[:, None]
    x0 = np.clip(xs - r, 0, w)[None, :]
    x1 = np.clip(xs + r + 1, 0, w)[None, :]

    sums = integral[y1, x1] - integral[y0, x1] - integral[y1, x0] + integral[y0, x0]
    counts = ((y1 - y0) * (x1 - x0))[..., None]
    mean = kernels.to_u8_even(sums / counts)
    return kernels.pack_rgba(mean[..., 0], mean[..., 1], mean[..., 2])


def pixelate(image: np.ndarray, block: int = PIXELATE_BLOCK) -> np.ndarray:
    """Fill each block with its mean color; partial edge blocks use only their own pixels."""
    rgb = np.asarray(image)[..., :3].astype(np.float64)
    h, w = rgb.shape[:2]
    b = max(1, int(block))
    out = np.empty((h, w, 4), dtype=np.uint8)
    out[..., 3] = 255
    for y in range(0, h, b):
        for x in range(0, w, b):
            cell = rgb[y:y + b, x:x + b]
            out[y:y + b, x:x + b, :3] = kernels.to_u8_even(cell.reshape(-1, 3).mean(axis=0))
    return out


def apply_filter(image: np.ndarray, mode: FaceFilterMode,
                 blur_radius: int = BLUR_RADIUS, block: int = PIXELATE_BLOCK) -> np.ndarray:
    if mode == FaceFilterMode.GRAYSCALE:
        return kernels.grayscale(image)
    if mode == FaceFilterMode.BLUR:
        return box_blur(image, blur_radius)
    if mode == FaceFilterMode.HSV:
        return kernels.hsv(image)
    if mode == FaceFilterMode.PIXELATE:
        return pixelate(image, block)
    return np.array(image, copy=True)


class FaceRegionCompositor:
    def __init__(self, blur_radius: int = BLUR_RADIUS, block: int = PIXELATE_BLOCK):
        self.blur_radius = blur_radius
        self.block = block

    def compose(self, frozen_frame: Optional[np.ndarray], box: Optional[FaceBox],
                mode: FaceFilterMode) -> Optional[FilteredRegion]:
        """Filter the frozen face region; None when there is nothing to filter."""
        if frozen_frame is None or box is None:
            return None
        h, w = frozen_frame.shape[:2]
        bounds = clamp_box(box, w, h)
        if bounds is None:
            logger.debug(f"[compositor] box {box} lies outside {w}x{h}; skipping")
            return None
        x0, y0, x1, y1 = bounds
        sub = frozen_frame[y0:y1, x0:x1]
        out = apply_filter(sub, mode, self.blur_radius, self.block)
        return FilteredRegion(x=x0, y=y0, image=out, mode=mode)
