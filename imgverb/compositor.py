"""Per-pixel effect: warp, evaluate channel expressions, blend with source."""

from __future__ import annotations

import numpy as np

from imgverb.config import DistortionConfig
from imgverb.core import round_to_uint8, wrap_to_uint8
from imgverb.distort import sample_grid
from imgverb.errors import EvaluationError
from imgverb.expression import CHANNELS, Program


def generate(
    width: int,
    height: int,
    programs: dict[str, Program],
    distortion: DistortionConfig | None = None,
) -> np.ndarray:
    """Evaluate the four channel programs over a whole frame.

    Returns an (H, W, 4) uint8 array. Each evaluated value is narrowed by
    truncation and modulo-256 wrap, so an expression yielding 300 gives 44.

    Raises:
        EvaluationError: with channel, source text and pixel coordinates of
            the first failure met when walking pixels in raster order and,
            at each pixel, channels in red, green, blue, alpha order.
    """
    sample_x, sample_y = sample_grid(width, height, distortion)
    bindings = {"x": sample_x, "y": sample_y}

    planes = []
    for channel in CHANNELS:
        try:
            values = programs[channel].evaluate(bindings)
        except EvaluationError as err:
            raise _first_failure(programs, sample_x, sample_y, channel, err) from err
        planes.append(wrap_to_uint8(np.broadcast_to(values, (height, width))))
    return np.stack(planes, axis=-1)


def composite(
    frame: np.ndarray,
    programs: dict[str, Program],
    ratio: float,
    distortion: DistortionConfig | None = None,
) -> np.ndarray:
    """Blend generated channels with the source frame.

    ``output = round(ratio * source + (1 - ratio) * generated)`` per channel,
    where source is read at the original pixel even when distortion moved
    the sample point.

    Args:
        frame: Source frame, (H, W, 4) uint8 RGBA.
        programs: Parsed channel programs keyed by channel name.
        ratio: Weight of the source pixel in [0, 1].
        distortion: Warp settings; None or disabled means identity.

    Returns:
        New (H, W, 4) uint8 frame.
    """
    if frame.ndim != 3 or frame.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA frame, got shape {frame.shape}")

    height, width = frame.shape[:2]
    generated = generate(width, height, programs, distortion)
    blended = ratio * frame.astype(np.float64) + (1.0 - ratio) * generated.astype(np.float64)
    return round_to_uint8(blended)


def _first_failure(
    programs: dict[str, Program],
    sample_x: np.ndarray,
    sample_y: np.ndarray,
    channel: str,
    err: EvaluationError,
) -> EvaluationError:
    """Re-evaluate pixel by pixel to find the first failing (pixel, channel).

    A whole-frame failure points at a pixel that does fail, so only the
    pixels up to it in raster order need a scalar pass.
    """
    height, width = sample_x.shape
    flagged = _failing_pixel(err.index)
    last = min(flagged[1] * width + flagged[0], height * width - 1)

    for flat in range(last + 1):
        row, col = divmod(flat, width)
        point = {"x": sample_x[row, col], "y": sample_y[row, col]}
        for name in CHANNELS:
            program = programs[name]
            try:
                program.evaluate(point)
            except EvaluationError as scalar_err:
                return EvaluationError(
                    scalar_err.message,
                    scalar_err.expression,
                    channel=name,
                    source=program.source,
                    pixel=(col, row),
                )

    return EvaluationError(
        err.message,
        err.expression,
        index=err.index,
        channel=channel,
        source=programs[channel].source,
        pixel=flagged,
    )


def _failing_pixel(index: tuple[int, ...] | None) -> tuple[int, int]:
    # Scalar failures hit every pixel, so the first one in raster order is (0, 0)
    if index is None or len(index) < 2:
        return (0, 0)
    row, col = index[-2], index[-1]
    return (col, row)
