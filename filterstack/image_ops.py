from __future__ import annotations

import numpy as np


ArrayF = np.ndarray

_SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float32,
)


def _to_float01(rgb8: np.ndarray) -> ArrayF:
    if rgb8.dtype != np.uint8:
        raise TypeError(f"Expected uint8 image, got {rgb8.dtype}")
    if rgb8.ndim != 3 or rgb8.shape[2] != 3:
        raise ValueError(f"Expected HxWx3 RGB array, got shape {rgb8.shape}")
    return rgb8.astype(np.float32) / 255.0


def _to_uint8(rgb01: ArrayF) -> np.ndarray:
    rgb01 = np.clip(rgb01, 0.0, 1.0)
    return (rgb01 * 255.0 + 0.5).astype(np.uint8)


def luminance(rgb01: ArrayF) -> ArrayF:
    # Rec.709 luma
    return rgb01[..., 0] * 0.2126 + rgb01[..., 1] * 0.7152 + rgb01[..., 2] * 0.0722


def srgb_to_linear(rgb01: ArrayF) -> ArrayF:
    x = np.clip(rgb01, 0.0, 1.0)
    return np.where(x <= 0.04045, x / 12.92, np.power((x + 0.055) / 1.055, 2.4)).astype(np.float32)


def linear_to_srgb(lin: ArrayF) -> ArrayF:
    x = np.clip(lin, 0.0, 1.0)
    return np.where(x <= 0.0031308, x * 12.92, 1.055 * np.power(x, 1.0 / 2.4) - 0.055).astype(np.float32)


def apply_contrast(rgb01: ArrayF, contrast: float) -> ArrayF:
    # contrast in [-1, 1]; 0=no change
    c = float(contrast)
    if c == 0:
        return rgb01
    factor = 1.0 + c
    return (rgb01 - 0.5) * factor + 0.5


def apply_exposure(rgb01: ArrayF, exposure: float) -> ArrayF:
    # exposure in stops, scaled in linear light
    ev = float(exposure)
    if ev == 0.0:
        return rgb01
    lin = srgb_to_linear(rgb01) * np.float32(2.0**ev)
    return linear_to_srgb(lin)


def apply_sepia(rgb01: ArrayF) -> ArrayF:
    out = rgb01 @ _SEPIA_MATRIX.T
    return np.clip(out, 0.0, 1.0).astype(np.float32)


def apply_monochrome(rgb01: ArrayF, contrast: float = 0.3) -> ArrayF:
    l = luminance(rgb01)
    l = np.clip(apply_contrast(l, contrast), 0.0, 1.0)
    return np.repeat(l[..., None], 3, axis=-1).astype(np.float32)


def posterize(rgb01: ArrayF, levels: int) -> ArrayF:
    n = max(2, int(levels))
    steps = float(n - 1)
    return (np.floor(np.clip(rgb01, 0.0, 1.0) * steps + 0.5) / steps).astype(np.float32)


def edge_mask(rgb01: ArrayF, threshold: float = 0.12) -> np.ndarray:
    l = luminance(rgb01)
    gy, gx = np.gradient(l)
    return np.hypot(gx, gy) > float(threshold)


def apply_comic(rgb01: ArrayF, levels: int = 4, threshold: float = 0.12) -> ArrayF:
    out = posterize(rgb01, levels)
    if min(rgb01.shape[:2]) < 2:
        return out
    out[edge_mask(rgb01, threshold)] = 0.0
    return out


def _block_starts(length: int, block: int) -> np.ndarray:
    return np.arange(0, length, block, dtype=np.intp)


def apply_pixellate(rgb01: ArrayF, block: int = 8) -> ArrayF:
    b = max(1, int(block))
    if b == 1:
        return rgb01
    h, w = rgb01.shape[:2]
    ys = _block_starts(h, b)
    xs = _block_starts(w, b)

    # Sum per block, then divide by the actual block area (edge blocks may be smaller).
    sums = np.add.reduceat(np.add.reduceat(rgb01, ys, axis=0), xs, axis=1)
    heights = np.diff(np.append(ys, h))
    widths = np.diff(np.append(xs, w))
    means = sums / (heights[:, None, None] * widths[None, :, None])

    out = np.repeat(np.repeat(means, heights, axis=0), widths, axis=1)
    return out.astype(np.float32)
