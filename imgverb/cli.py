"""Unified CLI entry point for imgverb."""

import argparse
import logging
import sys

from imgverb.config import (
    ChannelExpressions, DistortionConfig, EffectConfig, IMAGE_TYPES, ReverbConfig, RunConfig,
)
from imgverb.errors import ImgverbError


def _add_output_arg(parser):
    parser.add_argument("-o", "--output", required=True,
                        help="Output path")


def _add_workers_arg(parser):
    parser.add_argument("-j", "--workers", type=int, default=1,
                        help="Frames processed concurrently (default: 1)")


def _add_effect_args(p):
    """Add channel expression, ramp, distortion and reverb arguments."""
    g = p.add_argument_group("expressions")
    g.add_argument("--red", default="255", help="Red channel expression over x, y")
    g.add_argument("--green", default="255", help="Green channel expression")
    g.add_argument("--blue", default="255", help="Blue channel expression")
    g.add_argument("--alpha", default="255", help="Alpha channel expression")

    g = p.add_argument_group("interpolation")
    g.add_argument("--ratio", type=float, default=1.0,
                   help="Starting weight of the source pixel, 0-1 (default: 1.0)")
    g.add_argument("--adjust", type=float, default=0.0,
                   help="Total ratio change spread across the whole sequence")

    g = p.add_argument_group("distortion")
    g.add_argument("--distort", action="store_true", help="Enable the sinusoidal warp")
    g.add_argument("--amp", type=float, default=0.0)
    g.add_argument("--freq", type=float, default=0.0)
    g.add_argument("--phase", type=float, default=0.0)

    g = p.add_argument_group("reverb")
    g.add_argument("--reverb", action="store_true", help="Enable the row reverb")
    g.add_argument("--sample-rate", type=float, default=44100.0)
    g.add_argument("--reverb-ms", type=float, default=0.42,
                   help="Echo length in ms; offset = round(ms / 1000 * sample rate) pixels")
    g.add_argument("--decay", type=float, default=0.69)
    g.add_argument("--damping", type=float, default=0.5)
    g.add_argument("--reverb-first", action="store_true",
                   help="Apply the reverb to the source frame before compositing")

    p.add_argument("--config", type=str, default=None,
                   help="Load effect settings and expressions from a JSON run config")


def _effect_from_args(args) -> EffectConfig:
    return EffectConfig(
        distortion=DistortionConfig(
            enabled=args.distort,
            amplitude=args.amp,
            frequency=args.freq,
            phase=args.phase,
        ),
        reverb=ReverbConfig(
            enabled=args.reverb,
            sample_rate=args.sample_rate,
            length_ms=args.reverb_ms,
            decay=args.decay,
            damping=args.damping,
            pre_composite=args.reverb_first,
        ),
        interpolation_ratio=args.ratio,
        interpolation_adjust=args.adjust,
    )


def _expressions_from_args(args) -> ChannelExpressions:
    return ChannelExpressions(args.red, args.green, args.blue, args.alpha)


def _settings(args) -> tuple[EffectConfig, ChannelExpressions]:
    """Effect settings from --config when given, otherwise from flags."""
    if args.config:
        run_config = RunConfig.load(args.config)
        return run_config.effect, run_config.expressions
    return _effect_from_args(args), _expressions_from_args(args)


def cmd_run(args):
    """Video -> frames -> effect -> video."""
    from imgverb.render import render
    if args.config:
        config = RunConfig.load(args.config)
    else:
        config = RunConfig(
            input_video=args.input,
            frames_dir=args.frames_dir,
            output_video=args.output,
            image_type=args.image_type,
            fps=args.fps,
            effect=_effect_from_args(args),
            expressions=_expressions_from_args(args),
        )
    output = render(config, workdir=args.workdir, workers=args.workers)
    print(f"Render -> {output}")


def cmd_frames(args):
    """Process an already-extracted frame directory."""
    from imgverb.render import process_directory
    effect, expressions = _settings(args)
    written = process_directory(
        args.input, args.output, effect, expressions,
        image_type=args.image_type, workers=args.workers,
    )
    print(f"Frames ({len(written)}) -> {args.output}")


def cmd_frame(args):
    """Process a single image at the ramp position of one frame."""
    from imgverb.core import load_frame, save_frame
    from imgverb.expression import parse_channels
    from imgverb.ramp import ratio_schedule
    from imgverb.render import process_frame
    effect, expressions = _settings(args)
    effect.validate()
    programs = parse_channels(expressions)
    ratio = ratio_schedule(effect.interpolation_ratio, effect.interpolation_adjust, args.total)[args.index]
    result = process_frame(load_frame(args.input), effect, programs, ratio)
    save_frame(args.output, result)
    print(f"Frame (ratio {ratio:.4f}) -> {args.output}")


def cmd_eval(args):
    """Evaluate one expression at a pixel."""
    from imgverb.core import wrap_to_uint8
    from imgverb.expression import evaluate, parse
    tree = parse(args.expression)
    value = evaluate(tree, {"x": args.x, "y": args.y})
    print(f"{tree} @ (x={args.x}, y={args.y}) = {value} -> {int(wrap_to_uint8(value))}")


def cmd_config(args):
    """Write a JSON run config from the command-line flags."""
    config = RunConfig(
        input_video=args.input,
        frames_dir=args.frames_dir,
        output_video=args.video_output,
        image_type=args.image_type,
        fps=args.fps,
        effect=_effect_from_args(args),
        expressions=_expressions_from_args(args),
    )
    config.validate()
    config.save(args.output)
    print(f"Config -> {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imgverb",
        description="Per-pixel expression, warp and row-reverb effects for video frames",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- run ---
    p = subparsers.add_parser("run", help="Apply the effect to a video (decode, process, re-encode)")
    p.add_argument("input", nargs="?", default=None, help="Input video file")
    p.add_argument("--frames-dir", default="frames",
                   help="Working frame directory, relative to --workdir (default: frames)")
    p.add_argument("--workdir", default=".", help="Base directory for frame files")
    p.add_argument("--image-type", choices=IMAGE_TYPES, default="png")
    p.add_argument("--fps", type=int, default=30)
    p.add_argument("-o", "--output", default=None, help="Output video file")
    _add_effect_args(p)
    _add_workers_arg(p)
    p.set_defaults(func=cmd_run)

    # --- frames ---
    p = subparsers.add_parser("frames", help="Apply the effect to a directory of frames")
    p.add_argument("input", help="Directory of source frames")
    p.add_argument("--image-type", choices=IMAGE_TYPES, default="png")
    _add_output_arg(p)
    _add_effect_args(p)
    _add_workers_arg(p)
    p.set_defaults(func=cmd_frames)

    # --- frame ---
    p = subparsers.add_parser("frame", help="Apply the effect to a single image")
    p.add_argument("input", help="Input image")
    p.add_argument("--index", type=int, default=0, help="Frame index within the sequence")
    p.add_argument("--total", type=int, default=1, help="Frames in the sequence")
    _add_output_arg(p)
    _add_effect_args(p)
    p.set_defaults(func=cmd_frame)

    # --- eval ---
    p = subparsers.add_parser("eval", help="Evaluate a channel expression at one pixel")
    p.add_argument("expression", help="Expression over x and y")
    p.add_argument("-x", type=int, default=0)
    p.add_argument("-y", type=int, default=0)
    p.set_defaults(func=cmd_eval)

    # --- config ---
    p = subparsers.add_parser("config", help="Write a JSON run config")
    p.add_argument("input", help="Input video file")
    p.add_argument("video_output", help="Output video file")
    p.add_argument("--frames-dir", default="frames")
    p.add_argument("--image-type", choices=IMAGE_TYPES, default="png")
    p.add_argument("--fps", type=int, default=30)
    _add_output_arg(p)
    _add_effect_args(p)
    p.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "run" and not args.config and (args.input is None or args.output is None):
        parser.error("run needs an input video and -o/--output unless --config is given")

    if args.command == "frame" and not 0 <= args.index < args.total:
        parser.error(f"--index must be in [0, {args.total})")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except ImgverbError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
