"""Tests for reverb module."""

import numpy as np
import pytest

from imgverb.reverb import row_reverb


def row(values):
    """One-row, one-channel frame."""
    return np.array(values, dtype=np.uint8).reshape(1, len(values), 1)


class TestRowReverb:
    def test_noop_when_length_reaches_width(self):
        f = row([10, 20, 30, 40])
        for length in (4, 5, 100):
            np.testing.assert_array_equal(row_reverb(f, length, 0.7, 0.3), f)

    def test_echo_placement_without_damping(self):
        out = row_reverb(row([10, 20, 30, 40, 50]), 2, 0.5, 0.0)
        # [2] = 30*.5 + 10*.5, [3] = 40*.5 + 20*.5, [4] = 50*.5 + 30*.5
        assert out[0, :, 0].tolist() == [10, 20, 20, 30, 40]

    def test_damping_reads_previous_echo(self):
        out = row_reverb(row([10, 20, 30, 40, 50]), 2, 0.5, 0.5)
        # [3] = 30*.5 + [2]=20 *.5 = 25; [4] = 40*.5 + [3]=25 *.5 = 32.5 -> 32
        assert out[0, :, 0].tolist() == [10, 20, 20, 25, 32]

    def test_zero_length_without_damping_is_identity(self):
        f = row([10, 20, 30, 40, 50])
        np.testing.assert_array_equal(row_reverb(f, 0, 0.5, 0.0), f)

    def test_zero_length_with_damping_smooths(self):
        out = row_reverb(row([0, 100, 100, 100]), 0, 0.5, 0.5)
        # [1] = 100*.5 + 0*.5 = 50; [2] = 100*.5 + 50*.5 = 75; [3] = 87.5 -> 87
        assert out[0, :, 0].tolist() == [0, 50, 75, 87]

    def test_rows_and_channels_independent(self):
        f = np.zeros((2, 5, 4), dtype=np.uint8)
        f[0, :, 0] = [10, 20, 30, 40, 50]
        f[1, :, 2] = [50, 40, 30, 20, 10]
        out = row_reverb(f, 2, 0.5, 0.0)
        assert out[0, :, 0].tolist() == [10, 20, 20, 30, 40]
        assert out[1, :, 2].tolist() == [50, 40, 40, 30, 20]
        assert np.all(out[0, :, 1:] == 0)
        assert np.all(out[1, :, :2] == 0)

    def test_saturates_out_of_range(self):
        out = row_reverb(row([200, 0, 250]), 1, 2.0, 0.0)
        # [1] = 0*2 + 200*-1 -> clipped to 0; [2] = 250*2 + 0*-1 = 500 -> 255
        assert out[0, :, 0].tolist() == [200, 0, 255]

    def test_does_not_modify_input(self, frame):
        before = frame.copy()
        row_reverb(frame, 2, 0.7, 0.4)
        np.testing.assert_array_equal(frame, before)

    def test_negative_length(self):
        with pytest.raises(ValueError):
            row_reverb(row([1, 2, 3]), -1, 0.5, 0.5)
