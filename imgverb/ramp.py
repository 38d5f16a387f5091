"""Frame-indexed interpolation ramp between expression output and source."""

from __future__ import annotations

from imgverb.errors import ConfigError


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


class InterpolationRamp:
    """Blend ratio that moves by ``adjust / total_frames`` per frame.

    The ratio is the weight of the source pixel: 1.0 keeps the source
    untouched, 0.0 shows only the expression output. It saturates at both
    ends of [0, 1].
    """

    def __init__(self, start: float, adjust: float, total_frames: int):
        if total_frames <= 0:
            raise ConfigError(f"total frame count must be positive, got {total_frames}")
        self._ratio = _clamp_unit(start)
        self.delta = adjust / total_frames

    def current(self) -> float:
        return self._ratio

    def advance(self) -> float:
        """Step to the next frame's ratio and return it."""
        self._ratio = _clamp_unit(self._ratio + self.delta)
        return self._ratio


def ratio_schedule(start: float, adjust: float, total_frames: int) -> list[float]:
    """Ratio for every frame, precomputed so frames can be processed out of order."""
    ramp = InterpolationRamp(start, adjust, total_frames)
    ratios = []
    for _ in range(total_frames):
        ratios.append(ramp.current())
        ramp.advance()
    return ratios
