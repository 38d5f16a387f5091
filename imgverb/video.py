"""Frame directories and video decode/encode (moviepy, ffmpeg underneath)."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from PIL import Image

VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".webm", ".flv", ".wmv"}

FX_MARKER = "_fx"


def prepare_dir(path: str) -> Path:
    """Create a working directory, emptying it first if it already exists."""
    directory = Path(path)
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True)
    return directory


def list_frames(directory: str, image_type: str, include_processed: bool = False) -> list[Path]:
    """Frame files of one type in lexicographic order.

    Frames already written by the effect (``*_fx_*``) are skipped unless
    ``include_processed`` is set.
    """
    suffix = f".{image_type.lower().lstrip('.')}"
    return sorted(
        f for f in Path(directory).iterdir()
        if f.is_file()
        and f.suffix.lower() == suffix
        and (include_processed or FX_MARKER not in f.stem)
    )


def fx_frame_path(path: str, out_dir: str | None = None, stem: str | None = None) -> Path:
    """Name of the processed frame for a source frame.

    ``clip_007.png`` becomes ``clip_fx_007.png``; the index after the last
    underscore is kept so the processed sequence sorts the same way.
    """
    path = Path(path)
    base, sep, index = path.stem.rpartition("_")
    if stem is None:
        stem = base if sep else path.stem
    name = f"{stem}{FX_MARKER}_{index}{path.suffix}" if sep else f"{stem}{FX_MARKER}{path.suffix}"
    return Path(out_dir if out_dir is not None else path.parent) / name


def extract_frames(
    video_path: str,
    out_dir: str,
    stem: str,
    image_type: str = "png",
    fps: int = 30,
) -> list[Path]:
    """Decode a video into numbered still frames ``<stem>_001.<type>``, ...

    Returns the written paths in order.
    """
    from moviepy import VideoFileClip

    clip = VideoFileClip(str(video_path))
    digits = max(3, len(str(int(clip.duration * fps) + 1)))
    paths = []
    try:
        for i, frame in enumerate(clip.iter_frames(fps=fps, dtype="uint8"), start=1):
            path = Path(out_dir) / f"{stem}_{i:0{digits}d}.{image_type}"
            Image.fromarray(frame).save(path)
            paths.append(path)
    finally:
        clip.close()
    return paths


def encode_frames(
    frame_paths: list[Path],
    output_path: str,
    fps: int = 30,
    codec: str = "libx264",
) -> None:
    """Encode an ordered list of frame files into a video (yuv420p)."""
    from moviepy import ImageSequenceClip

    if not frame_paths:
        raise ValueError("No frames to encode")

    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

    clip = ImageSequenceClip([str(p) for p in frame_paths], fps=fps)
    try:
        clip.write_videofile(
            str(output_path),
            codec=codec,
            fps=fps,
            audio=False,
            logger=None,
            pixel_format="yuv420p",
        )
    finally:
        clip.close()


def is_video(path: str) -> bool:
    """True when path names a file with a video container extension."""
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS
