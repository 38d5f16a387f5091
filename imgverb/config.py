"""Configuration dataclasses for a run.

The effect settings carry no defaults: every value is spelled out by the
caller (the CLI supplies its own defaults). ``RunConfig`` adds the
orchestration side and round-trips through JSON.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass

from imgverb.core import ms_to_samples
from imgverb.errors import ConfigError

IMAGE_TYPES = ("png", "jpg")


@dataclass(frozen=True)
class DistortionConfig:
    """Sinusoidal coordinate warp."""
    enabled: bool
    amplitude: float
    frequency: float
    phase: float


@dataclass(frozen=True)
class ReverbConfig:
    """Row reverb (per-scanline echo with decay and damping)."""
    enabled: bool
    sample_rate: float
    length_ms: float
    decay: float
    damping: float
    pre_composite: bool = False  # apply to the source frame instead of the result

    @property
    def length_samples(self) -> int:
        """Echo offset in pixels: round(length_ms / 1000 * sample_rate)."""
        return ms_to_samples(self.length_ms, self.sample_rate)

    def validate(self) -> None:
        if self.sample_rate <= 0:
            raise ConfigError(f"reverb sample rate must be positive, got {self.sample_rate}")
        if self.length_ms < 0:
            raise ConfigError(f"reverb length must be >= 0 ms, got {self.length_ms}")


@dataclass(frozen=True)
class EffectConfig:
    """Run-wide effect parameters, built once and never mutated."""
    distortion: DistortionConfig
    reverb: ReverbConfig
    interpolation_ratio: float
    interpolation_adjust: float

    def validate(self) -> None:
        if self.reverb.enabled:
            self.reverb.validate()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> EffectConfig:
        try:
            return cls(
                distortion=DistortionConfig(**d["distortion"]),
                reverb=ReverbConfig(**d["reverb"]),
                interpolation_ratio=float(d["interpolation_ratio"]),
                interpolation_adjust=float(d["interpolation_adjust"]),
            )
        except (KeyError, TypeError) as e:
            raise ConfigError(f"invalid effect config: {e}") from e


@dataclass(frozen=True)
class ChannelExpressions:
    """Source text of the four channel expressions."""
    red: str
    green: str
    blue: str
    alpha: str

    def as_dict(self) -> dict[str, str]:
        return {"red": self.red, "green": self.green, "blue": self.blue, "alpha": self.alpha}

    @classmethod
    def uniform(cls, text: str) -> ChannelExpressions:
        """Same expression on every channel."""
        return cls(text, text, text, text)


@dataclass(frozen=True)
class RunConfig:
    """A complete video -> frames -> effect -> video run."""
    input_video: str
    frames_dir: str
    output_video: str
    image_type: str
    fps: int
    effect: EffectConfig
    expressions: ChannelExpressions

    def validate(self) -> None:
        if self.image_type not in IMAGE_TYPES:
            raise ConfigError(
                f"image type must be one of {', '.join(IMAGE_TYPES)}, got '{self.image_type}'"
            )
        if self.fps <= 0:
            raise ConfigError(f"fps must be positive, got {self.fps}")
        self.effect.validate()

    def to_dict(self) -> dict:
        return {
            "input_video": self.input_video,
            "frames_dir": self.frames_dir,
            "output_video": self.output_video,
            "image_type": self.image_type,
            "fps": self.fps,
            "effect": self.effect.to_dict(),
            "expressions": self.expressions.as_dict(),
        }

    def save(self, path: str) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, d: dict) -> RunConfig:
        try:
            return cls(
                input_video=d["input_video"],
                frames_dir=d["frames_dir"],
                output_video=d["output_video"],
                image_type=d.get("image_type", "png"),
                fps=int(d.get("fps", 30)),
                effect=EffectConfig.from_dict(d["effect"]),
                expressions=ChannelExpressions(**d["expressions"]),
            )
        except (KeyError, TypeError) as e:
            raise ConfigError(f"invalid run config: {e}") from e

    @classmethod
    def load(cls, path: str) -> RunConfig:
        with open(path) as f:
            return cls.from_dict(json.load(f))
