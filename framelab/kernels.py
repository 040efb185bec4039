"""
Stateless per-pixel transforms.

Every kernel maps one RGBA frame (H, W, 4) uint8 to a new frame of the same
size with alpha forced to 255. RGB-only input (H, W, 3) is accepted as well.
Arithmetic is done in int32/float64 and clamped back into [0, 255] on store.
"""
from __future__ import annotations
from enum import Enum

import numpy as np


class Channel(Enum):
    RED = 0
    GREEN = 1
    BLUE = 2


def _rgb(frame: np.ndarray) -> np.ndarray:
    arr = np.asarray(frame)
    if arr.ndim == 2:
        arr = np.repeat(arr[..., None], 3, axis=2)
    return arr[..., :3].astype(np.int32)


def to_u8(values: np.ndarray) -> np.ndarray:
    """Round half up and clamp into the byte range."""
    return np.clip(np.floor(np.asarray(values, dtype=np.float64) + 0.5), 0, 255).astype(np.uint8)


def to_u8_even(values: np.ndarray) -> np.ndarray:
    """Round half to even and clamp into the byte range, as a clamped byte store does."""
    return np.clip(np.rint(np.asarray(values, dtype=np.float64)), 0, 255).astype(np.uint8)


def clamp_threshold(t) -> int:
    try:
        return max(0, min(255, int(t)))
    except (TypeError, ValueError):
        return 0


def pack_rgba(r, g, b) -> np.ndarray:
    """Stack three (H, W) planes into an RGBA frame with opaque alpha."""
    r = np.asarray(r)
    out = np.empty(r.shape + (4,), dtype=np.uint8)
    out[..., 0] = r
    out[..., 1] = g
    out[..., 2] = b
    out[..., 3] = 255
    return out


def _binary(mask: np.ndarray) -> np.ndarray:
    val = np.where(mask, 255, 0).astype(np.uint8)
    return pack_rgba(val, val, val)


def grayscale(frame: np.ndarray) -> np.ndarray:
    """Channel average brightened by 20%, saturating at 255."""
    rgb = _rgb(frame)
    gray = to_u8(rgb.sum(axis=2) / 3.0 * 1.2)
    return pack_rgba(gray, gray, gray)


def isolate_channel(frame: np.ndarray, channel: Channel) -> np.ndarray:
    """Keep one channel's value and zero the other two."""
    rgb = _rgb(frame)
    out = np.zeros(rgb.shape[:2] + (4,), dtype=np.uint8)
    out[..., channel.value] = np.clip(rgb[..., channel.value], 0, 255)
    out[..., 3] = 255
    return out


def threshold_channel(frame: np.ndarray, channel: Channel, t) -> np.ndarray:
    """Pure channel color where the channel value is strictly above `t`, black elsewhere."""
    rgb = _rgb(frame)
    t = clamp_threshold(t)
    out = np.zeros(rgb.shape[:2] + (4,), dtype=np.uint8)
    out[..., channel.value] = np.where(rgb[..., channel.value] > t, 255, 0)
    out[..., 3] = 255
    return out


def cmy(frame: np.ndarray) -> np.ndarray:
    """Subtractive complement C=255-R, M=255-G, Y=255-B written as the RGB triple."""
    comp = np.clip(255 - _rgb(frame), 0, 255)
    return pack_rgba(comp[..., 0], comp[..., 1], comp[..., 2])


def hsv(frame: np.ndarray) -> np.ndarray:
    """Hue/saturation/value packed as (hue 0-255, sat 0-255, raw max channel).

    Hue sectors are chosen in a fixed order; the first matching case wins:
      1. R max, G min  -> 5 + B'
      2. R max         -> 1 - G'
      3. G max, B min  -> R' + 1
      4. G max         -> 3 - B'
      5. R max         -> 3 + G'   (unreachable after 1-2, kept for parity)
      6. otherwise     -> 5 - R'
    where X' = (max - X) / delta. Case 6 is what blue-max pixels fall into.
    Case 1 with G == B lands on 6 (360 degrees), which is folded to hue 0.
    """
    rgb = _rgb(frame).astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxv = rgb.max(axis=2)
    minv = rgb.min(axis=2)
    delta = maxv - minv

    s = np.where(maxv > 0, delta / np.where(maxv > 0, maxv, 1.0), 0.0)

    safe = np.where(delta > 0, delta, 1.0)
    rp = (maxv - r) / safe
    gp = (maxv - g) / safe
    bp = (maxv - b) / safe

    r_max = r == maxv
    g_max = g == maxv
    h = np.select(
        [
            r_max & (g == minv),
            r_max & (g != minv),
            g_max & (b == minv),
            g_max & (b != minv),
            r_max,
        ],
        [5.0 + bp, 1.0 - gp, rp + 1.0, 3.0 - bp, 3.0 + gp],
        default=5.0 - rp,
    )
    h = np.where(delta > 0, h, 0.0) * 60.0
    h = np.where(h < 0, h + 360.0, h)
    # a full turn is the same hue as zero
    h = np.where(h >= 360.0, h - 360.0, h)

    return pack_rgba(to_u8(h / 360.0 * 255.0), to_u8(s * 255.0), to_u8(maxv))


def cmy_threshold(frame: np.ndarray, t) -> np.ndarray:
    """White where the mean of (255-R, 255-G, 255-B) exceeds `t`."""
    rgb = _rgb(frame)
    intensity = (765 - rgb.sum(axis=2)) / 3.0
    return _binary(intensity > clamp_threshold(t))


def hsv_threshold(frame: np.ndarray, t) -> np.ndarray:
    """White where the HSV value (max channel) exceeds `t`."""
    return _binary(_rgb(frame).max(axis=2) > clamp_threshold(t))
