"""Run the effect over frames, frame directories and whole videos."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from imgverb.compositor import composite
from imgverb.config import ChannelExpressions, EffectConfig, RunConfig
from imgverb.core import load_frame, save_frame
from imgverb.errors import ConfigError
from imgverb.expression import Program, parse_channels
from imgverb.ramp import InterpolationRamp, ratio_schedule
from imgverb.reverb import row_reverb
from imgverb.video import (
    encode_frames, extract_frames, fx_frame_path, is_video, list_frames, prepare_dir,
)

logger = logging.getLogger(__name__)


def process_frame(
    frame: np.ndarray,
    config: EffectConfig,
    programs: dict[str, Program],
    ratio: float,
    reverb_length: int | None = None,
) -> np.ndarray:
    """Apply the full effect to one RGBA frame at a given blend ratio.

    Order is distortion -> expressions -> blend -> row reverb. With
    ``config.reverb.pre_composite`` the reverb runs on the source frame
    before compositing instead.
    """
    reverb = config.reverb
    if reverb_length is None:
        reverb_length = reverb.length_samples

    source = frame
    if reverb.enabled and reverb.pre_composite:
        source = row_reverb(source, reverb_length, reverb.decay, reverb.damping)

    result = composite(source, programs, ratio, config.distortion)

    if reverb.enabled and not reverb.pre_composite:
        result = row_reverb(result, reverb_length, reverb.decay, reverb.damping)
    return result


class FramePipeline:
    """Stateful per-run processor: frames must be fed in sequence order.

    Parses the channel expressions up front, so a bad expression fails
    before the first frame.
    """

    def __init__(self, config: EffectConfig, expressions: ChannelExpressions, total_frames: int):
        config.validate()
        self.config = config
        self.programs = parse_channels(expressions)
        self.ramp = InterpolationRamp(
            config.interpolation_ratio, config.interpolation_adjust, total_frames,
        )
        self.reverb_length = config.reverb.length_samples

    def process(self, frame: np.ndarray) -> np.ndarray:
        """Process the next frame, then advance the ramp."""
        result = process_frame(
            frame, self.config, self.programs, self.ramp.current(), self.reverb_length,
        )
        self.ramp.advance()
        return result


def _process_paths(
    paths: list[Path],
    out_dir: Path,
    config: EffectConfig,
    programs: dict[str, Program],
    workers: int,
    remove_source: bool,
) -> list[Path]:
    ratios = ratio_schedule(config.interpolation_ratio, config.interpolation_adjust, len(paths))
    reverb_length = config.reverb.length_samples

    def run(i: int) -> Path:
        src = paths[i]
        result = process_frame(load_frame(str(src)), config, programs, ratios[i], reverb_length)
        dest = fx_frame_path(src, out_dir)
        save_frame(str(dest), result)
        if remove_source:
            src.unlink()
        logger.debug("frame %d/%d %s -> %s (ratio %.4f)", i + 1, len(paths), src.name, dest.name, ratios[i])
        return dest

    if workers <= 1:
        return [run(i) for i in range(len(paths))]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, i) for i in range(len(paths))]
        try:
            return [f.result() for f in futures]
        except Exception:
            pool.shutdown(cancel_futures=True)
            raise


def process_directory(
    input_dir: str,
    output_dir: str,
    config: EffectConfig,
    expressions: ChannelExpressions,
    image_type: str = "png",
    workers: int = 1,
    remove_source: bool = False,
) -> list[Path]:
    """Process every frame of one image type in a directory.

    Frames are taken in lexicographic order; the ramp ratio for frame ``i``
    is the one a sequential run would reach after ``i`` advances, so the
    result does not depend on ``workers``.

    Args:
        input_dir: Directory of source frames.
        output_dir: Where ``*_fx_*`` frames go (created if missing; may be
            the input directory).
        config: Effect settings.
        expressions: Channel expression sources.
        image_type: 'png' or 'jpg'.
        workers: Frames processed concurrently.
        remove_source: Delete each source frame once its result is written.

    Returns:
        Written frame paths in sequence order.
    """
    config.validate()
    programs = parse_channels(expressions)

    paths = list_frames(input_dir, image_type)
    if not paths:
        raise ValueError(f"No .{image_type} frames in {input_dir}")

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Processing %d frames from %s", len(paths), input_dir)
    return _process_paths(paths, out_dir, config, programs, workers, remove_source)


def render(config: RunConfig, workdir: str = ".", workers: int = 1) -> Path:
    """Full run: decode the video to frames, apply the effect, re-encode.

    Configuration (including all four expressions) is checked before the
    video is touched. Source frames are deleted as they are processed;
    processed frames stay in ``<workdir>/<frames_dir>``.

    Returns:
        Path of the written video.
    """
    config.validate()
    programs = parse_channels(config.expressions)

    input_video = Path(config.input_video)
    if not input_video.exists():
        raise FileNotFoundError(f"Input video {input_video} does not exist")
    if not input_video.is_file() or not is_video(str(input_video)):
        raise ConfigError(f"{input_video} is not a video file")

    frames_path = prepare_dir(Path(workdir) / config.frames_dir)
    stem = frames_path.name

    sources = extract_frames(
        str(input_video), str(frames_path), stem, config.image_type, config.fps,
    )
    if not sources:
        raise ValueError(f"No frames decoded from {input_video}")
    logger.info("Extracted %d frames from %s into %s", len(sources), input_video, frames_path)

    written = _process_paths(
        sources, frames_path, config.effect, programs, workers, remove_source=True,
    )

    output = Path(config.output_video)
    encode_frames(written, str(output), fps=config.fps)
    logger.info("Encoded %d frames into %s", len(written), output)
    return output
