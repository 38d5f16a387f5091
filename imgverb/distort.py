"""Sinusoidal coordinate warp."""

from __future__ import annotations

import numpy as np

from imgverb.core import round_half_away


def distort(x, y, width: int, height: int, amp: float, freq: float, phase: float):
    """Map pixel coordinates to warped, in-bounds sample coordinates.

    The axes are deliberately crossed: ``y`` is the base of the new x and
    ``x`` the base of the new y, which gives the warp its diagonal look. With
    ``amp == 0`` the result is (y, x) clamped to the frame, not the identity.
    Offsets round halves away from zero.

    Works on plain ints (returns a pair of ints) or on integer coordinate
    grids (returns a pair of intp arrays).
    """
    x_arr = np.asarray(x)
    y_arr = np.asarray(y)
    dx = y_arr + round_half_away(amp * np.sin(freq * x_arr + phase)).astype(np.intp)
    dy = x_arr + round_half_away(amp * np.sin(freq * y_arr + phase)).astype(np.intp)
    dx = np.clip(dx, 0, width - 1)
    dy = np.clip(dy, 0, height - 1)
    if dx.ndim == 0:
        return int(dx), int(dy)
    return dx.astype(np.intp), dy.astype(np.intp)


def sample_grid(width: int, height: int, distortion=None) -> tuple[np.ndarray, np.ndarray]:
    """Sample coordinates for every pixel of a frame, as (H, W) grids.

    ``distortion`` is a DistortionConfig; when it is None or disabled the
    identity mapping is returned.
    """
    ys, xs = np.mgrid[0:height, 0:width]
    if distortion is None or not distortion.enabled:
        return xs, ys
    return distort(
        xs, ys, width, height,
        distortion.amplitude, distortion.frequency, distortion.phase,
    )
