"""Shared utilities: load/save frames, rounding and 8-bit narrowing."""

from __future__ import annotations

import numpy as np
from PIL import Image


def load_frame(path: str) -> np.ndarray:
    """Load any Pillow-readable image as an (H, W, 4) uint8 RGBA array."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"))


def save_frame(path: str, frame: np.ndarray) -> None:
    """Write an RGBA frame; format is inferred from the extension.

    JPEG has no alpha channel, so alpha is dropped for .jpg/.jpeg.
    """
    img = Image.fromarray(np.ascontiguousarray(frame, dtype=np.uint8))
    if str(path).lower().endswith((".jpg", ".jpeg")):
        img = img.convert("RGB")
    img.save(path)


def wrap_to_uint8(values) -> np.ndarray:
    """Truncate toward zero, then wrap modulo 256 (300 -> 44, -1 -> 255).

    Non-finite values become 0.
    """
    values = np.asarray(values, dtype=np.float64)
    finite = np.isfinite(values)
    wrapped = np.fmod(np.trunc(np.where(finite, values, 0.0)), 256.0)
    wrapped = np.where(wrapped < 0, wrapped + 256.0, wrapped)
    return wrapped.astype(np.uint8)


def clip_to_uint8(values) -> np.ndarray:
    """Truncate toward zero, then saturate into [0, 255]."""
    values = np.asarray(values, dtype=np.float64)
    return np.clip(np.trunc(np.nan_to_num(values)), 0, 255).astype(np.uint8)


def round_half_away(values) -> np.ndarray:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3).

    This is the one rounding rule used everywhere: blends, the distortion
    offset and the reverb length.
    """
    values = np.asarray(values, dtype=np.float64)
    return np.copysign(np.floor(np.abs(values) + 0.5), values)


def round_to_uint8(values) -> np.ndarray:
    """Round halves away from zero, then saturate into [0, 255]."""
    return np.clip(round_half_away(np.nan_to_num(values)), 0, 255).astype(np.uint8)


def ms_to_samples(ms: float, sr: float) -> int:
    """Convert milliseconds to sample count."""
    return int(round_half_away(ms / 1000.0 * sr))
