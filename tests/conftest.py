"""Shared test fixtures: synthetic RGBA frames and effect settings."""

import numpy as np
import pytest
from PIL import Image

from imgverb.config import (
    ChannelExpressions, DistortionConfig, EffectConfig, ReverbConfig,
)


def make_effect(
    ratio=1.0,
    adjust=0.0,
    distort=False,
    amp=0.0,
    freq=0.0,
    phase=0.0,
    reverb=False,
    sample_rate=1000.0,
    length_ms=2.0,
    decay=0.5,
    damping=0.0,
    pre_composite=False,
):
    return EffectConfig(
        distortion=DistortionConfig(enabled=distort, amplitude=amp, frequency=freq, phase=phase),
        reverb=ReverbConfig(
            enabled=reverb,
            sample_rate=sample_rate,
            length_ms=length_ms,
            decay=decay,
            damping=damping,
            pre_composite=pre_composite,
        ),
        interpolation_ratio=ratio,
        interpolation_adjust=adjust,
    )


@pytest.fixture
def effect():
    """Factory for EffectConfig with test-friendly defaults."""
    return make_effect


@pytest.fixture
def solid():
    """ChannelExpressions of '255' on every channel."""
    return ChannelExpressions.uniform("255")


@pytest.fixture
def frame():
    """A 6x8 (H x W) gradient frame: R = 10*x, G = 10*y, B = 64, A = 255."""
    h, w = 6, 8
    f = np.zeros((h, w, 4), dtype=np.uint8)
    f[:, :, 0] = (np.arange(w) * 10).reshape(1, w)
    f[:, :, 1] = (np.arange(h) * 10).reshape(h, 1)
    f[:, :, 2] = 64
    f[:, :, 3] = 255
    return f


@pytest.fixture
def frame_dir(tmp_path, frame):
    """Directory of three numbered PNG frames with different brightness."""
    directory = tmp_path / "frames"
    directory.mkdir()
    for i in range(1, 4):
        f = frame.copy()
        f[:, :, 2] = i * 50
        Image.fromarray(f).save(str(directory / f"clip_{i:03d}.png"))
    return directory
