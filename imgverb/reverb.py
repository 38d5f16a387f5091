"""Image reverb: a per-row recursive echo borrowed from audio delay effects.

Each row is treated as a one-dimensional signal and each channel as its own
sample stream. Sample ``x`` is mixed into position ``x + length``, and with
damping every echoed sample is smoothed against the one written just before
it, which makes the filter recursive. Rows never interact, so the loop runs
along x once with every row and channel handled in the same vector op.
"""

from __future__ import annotations

import numpy as np

from imgverb.core import clip_to_uint8


def row_reverb(
    frame: np.ndarray,
    length: int,
    decay: float,
    damping: float,
) -> np.ndarray:
    """Apply the row echo to an (H, W, C) uint8 frame.

    Args:
        frame: Input frame, left untouched.
        length: Echo offset in pixels (>= 0).
        decay: Weight of the existing sample at the echo target.
        damping: Weight of the previously echoed sample (0 disables smoothing).

    Returns:
        New uint8 frame. Columns that no echo reaches keep their values.
    """
    if length < 0:
        raise ValueError(f"reverb length must be >= 0, got {length}")

    source = frame.astype(np.float64)
    working = source.copy()
    width = frame.shape[1]

    # Left to right: position x + length - 1 has already been rewritten
    for x in range(max(0, width - length)):
        target = x + length
        echoed = working[:, target] * decay + source[:, x] * (1.0 - decay)
        if x > 0:
            echoed = echoed * (1.0 - damping) + working[:, target - 1] * damping
        working[:, target] = clip_to_uint8(echoed)

    return working.astype(np.uint8)
