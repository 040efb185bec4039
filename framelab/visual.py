"""Visualization helpers for the presentation layer.

- draw_face_box: rectangle + "Face Detected" label (green live, red frozen)
- render_heatmap: motion samples as translucent dots over a frame
- paste_region: put a filtered face sub-image back into its snapshot
- compose_mosaic: tile every published output into one BGR canvas

Inputs are RGBA frames from the pipeline; everything returned is BGR so it
can go straight to cv2.imshow / cv2.imwrite.
"""
from __future__ import annotations
from typing import Optional, Tuple

import cv2
import numpy as np

from framelab.capture import rgba_to_bgr
from framelab.compositor import FilteredRegion
from framelab.models import FaceBox, FaceFilterMode, SnapshotMode
from framelab.motion import MotionResult

LIVE_COLOR = (0, 255, 0)
FROZEN_COLOR = (0, 0, 255)
TILE = (160, 120)
HEATMAP_ALPHA = 150 / 255.0


def draw_face_box(frame: np.ndarray, box: Optional[FaceBox],
                  color: Tuple[int, int, int] = LIVE_COLOR,
                  label: Optional[str] = None) -> np.ndarray:
    """Draw a bounding box and label on a BGR frame (returns a copy)."""
    out = frame.copy()
    if box is None:
        return out
    h, w = out.shape[:2]
    x, y, fw, fh = int(box.x), int(box.y), int(box.w), int(box.h)
    # clamp to image bounds
    x = max(0, min(x, w - 1)); y = max(0, min(y, h - 1))
    fw = max(0, min(fw, w - x)); fh = max(0, min(fh, h - y))

    cv2.rectangle(out, (x, y), (x + fw, y + fh), color, 1)
    if label:
        cv2.putText(out, label, (x, max(10, y - 4)), cv2.FONT_HERSHEY_SIMPLEX, 0.35, color, 1, cv2.LINE_AA)
    return out


def render_heatmap(frame: np.ndarray, motion: MotionResult,
                   size: Optional[Tuple[int, int]] = None, radius: int = 3) -> np.ndarray:
    """Overlay motion samples on a BGR frame.

    Each sample becomes a dot colored (R=255, G=clamp(strength), B=0) blended
    at alpha 150/255; sample coordinates are scaled from the motion frame size
    onto `size` (defaults to the frame's own size).
    """
    if size is not None:
        frame = cv2.resize(frame, size, interpolation=cv2.INTER_AREA)
    out = frame.copy()
    if motion.count == 0 or motion.width == 0 or motion.height == 0:
        return out
    h, w = out.shape[:2]
    overlay = out.copy()
    mask = np.zeros((h, w), dtype=np.uint8)
    sx = (motion.xs.astype(np.float64) * w / motion.width).astype(int)
    sy = (motion.ys.astype(np.float64) * h / motion.height).astype(int)
    intensity = np.clip(motion.strengths, 0, 255).astype(int)
    for x, y, g in zip(sx.tolist(), sy.tolist(), intensity.tolist()):
        cv2.circle(overlay, (x, y), radius, (0, g, 255), -1)
        cv2.circle(mask, (x, y), radius, 255, -1)
    blended = cv2.addWeighted(overlay, HEATMAP_ALPHA, out, 1.0 - HEATMAP_ALPHA, 0)
    out[mask > 0] = blended[mask > 0]
    return out


def draw_motion_alert(frame: np.ndarray, motion: MotionResult) -> np.ndarray:
    out = frame.copy()
    if motion.alert:
        cv2.putText(out, "MOTION DETECTED!", (10, out.shape[0] - 10),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 1, cv2.LINE_AA)
    return out


def paste_region(frame: np.ndarray, region: Optional[FilteredRegion]) -> np.ndarray:
    """Paste a filtered RGBA sub-image into a copy of an RGBA frame at its offset."""
    out = np.array(frame, copy=True)
    if region is None:
        return out
    h, w = region.image.shape[:2]
    c = min(out.shape[2], region.image.shape[2])
    out[region.y:region.y + h, region.x:region.x + w, :c] = region.image[..., :c]
    return out


def snapshot_view(outputs) -> Optional[np.ndarray]:
    """BGR face tile: live box on the working frame, or the frozen snapshot with its filter."""
    if outputs.mode == SnapshotMode.FROZEN and outputs.snapshot is not None:
        if outputs.filter_mode == FaceFilterMode.NONE or outputs.filtered_face is None:
            return draw_face_box(rgba_to_bgr(outputs.snapshot), outputs.face_box,
                                 FROZEN_COLOR, outputs.face_label)
        return rgba_to_bgr(paste_region(outputs.snapshot, outputs.filtered_face))
    return None


def _tile(img: Optional[np.ndarray], size: Tuple[int, int] = TILE) -> np.ndarray:
    if img is None:
        return np.full((size[1], size[0], 3), 255, dtype=np.uint8)
    if img.ndim == 3 and img.shape[2] == 4:
        img = rgba_to_bgr(img)
    return cv2.resize(img, size, interpolation=cv2.INTER_AREA)


def compose_mosaic(outputs, live_frame: np.ndarray) -> np.ndarray:
    """
    Grid of all outputs (BGR):
      row 0: source | grayscale | heatmap
      row 1: red | green | blue
      row 2: red thr | green thr | blue thr
      row 3: source | cmy | hsv
      row 4: face | cmy thr | hsv thr
    """
    live_bgr = rgba_to_bgr(live_frame)
    source = outputs.snapshot if outputs.mode == SnapshotMode.FROZEN else live_frame

    face = snapshot_view(outputs)
    if face is None:
        working = cv2.resize(live_bgr, TILE, interpolation=cv2.INTER_AREA)
        face = draw_face_box(working, outputs.face_box, LIVE_COLOR, outputs.face_label)

    heat = render_heatmap(live_bgr, outputs.motion, TILE)
    heat = draw_motion_alert(heat, outputs.motion)

    f = outputs.frames
    rows = [
        [source, f["grayscale"], heat],
        [f["red"], f["green"], f["blue"]],
        [f["red_threshold"], f["green_threshold"], f["blue_threshold"]],
        [source, f["cmy"], f["hsv"]],
        [face, f["cmy_threshold"], f["hsv_threshold"]],
    ]
    return np.vstack([np.hstack([_tile(img) for img in row]) for row in rows])
