"""imgverb: per-pixel expression, warp and row-reverb effects for video frames."""

from imgverb.errors import ImgverbError, ConfigError, ParseError, EvaluationError
from imgverb.config import ChannelExpressions, DistortionConfig, EffectConfig, ReverbConfig, RunConfig
from imgverb.expression import parse, parse_channels, evaluate
from imgverb.distort import distort
from imgverb.ramp import InterpolationRamp, ratio_schedule
from imgverb.compositor import composite
from imgverb.reverb import row_reverb
from imgverb.render import FramePipeline, process_frame, process_directory, render

__version__ = "0.1.0"
