"""Tests for SSTV frequency estimation and colour helpers."""

import numpy as np
import pytest

from slowscan.sstv.dsp import (
    bin_width,
    estimate_frequency,
    freq_to_value,
    parabolic_offset,
    rgb_to_channel,
    search_band,
    spectrum_db,
    value_to_freq,
    yuv_to_rgb,
)

BIN_HZ = 10.0


def peak_spectrum(peak_bin, length=300, floor=-120.0, level=-10.0):
    spectrum = np.full(length, floor)
    spectrum[peak_bin] = level
    return spectrum


class TestSearchBand:
    """Tests for the 800-2800 Hz search band."""

    def test_band_bins(self):
        assert search_band(BIN_HZ, 1000) == (80, 280)

    def test_band_clipped_to_buffer(self):
        assert search_band(BIN_HZ, 100) == (80, 100)

    def test_fractional_bin_width(self):
        bw = bin_width(44100, 2048)
        start, end = search_band(bw, 1025)
        assert start == 37
        assert end == 131


class TestParabolicOffset:
    """Tests for sub-bin peak refinement."""

    def test_flat_peak_is_exactly_zero(self):
        assert parabolic_offset(-20.0, -20.0, -20.0) == 0.0

    def test_symmetric_neighbours(self):
        assert parabolic_offset(-30.0, -10.0, -30.0) == 0.0

    def test_skewed_towards_upper_neighbour(self):
        p = parabolic_offset(-20.0, -10.0, -15.0)
        assert p == pytest.approx(1 / 6)

    def test_infinite_neighbour_gives_zero(self):
        assert parabolic_offset(-np.inf, -10.0, -20.0) == 0.0


class TestEstimateFrequency:
    """Tests for estimate_frequency."""

    def test_single_peak(self):
        assert estimate_frequency(peak_spectrum(120), BIN_HZ) == pytest.approx(1200.0)

    def test_interpolated_peak(self):
        spectrum = peak_spectrum(150)
        spectrum[149] = -20.0
        spectrum[151] = -15.0
        assert estimate_frequency(spectrum, BIN_HZ) == pytest.approx((150 + 1 / 6) * BIN_HZ)

    def test_flat_band_returns_first_bin(self):
        spectrum = np.full(300, -20.0)
        assert estimate_frequency(spectrum, BIN_HZ) == 800.0

    def test_first_maximum_wins(self):
        spectrum = np.full(300, -120.0)
        spectrum[100] = -10.0
        spectrum[200] = -10.0
        assert estimate_frequency(spectrum, BIN_HZ) == pytest.approx(1000.0)

    def test_peak_outside_band_ignored(self):
        spectrum = peak_spectrum(150)
        spectrum[50] = 0.0     # 500 Hz, below the band
        spectrum[290] = 0.0    # 2900 Hz, above the band
        assert estimate_frequency(spectrum, BIN_HZ) == pytest.approx(1500.0)

    def test_noise_gate_rejects_weak_peak(self):
        spectrum = peak_spectrum(190, level=-95.0)
        assert estimate_frequency(spectrum, BIN_HZ, noise_gate=True) == 0.0
        assert estimate_frequency(spectrum, BIN_HZ, noise_gate=False) == pytest.approx(1900.0)

    def test_noise_gate_passes_strong_peak(self):
        spectrum = peak_spectrum(190, level=-50.0)
        assert estimate_frequency(spectrum, BIN_HZ, noise_gate=True) == pytest.approx(1900.0)

    def test_empty_spectrum(self):
        assert estimate_frequency([], BIN_HZ) == 0.0

    def test_buffer_shorter_than_band(self):
        assert estimate_frequency(np.zeros(50), BIN_HZ) == 0.0

    def test_peak_at_end_of_short_buffer(self):
        """The missing upper neighbour is replaced by the peak itself."""
        spectrum = np.full(121, -100.0)
        spectrum[120] = -10.0
        # alpha=-100, beta=gamma=-10 -> p = 0.5 * -90 / -90
        assert estimate_frequency(spectrum, BIN_HZ) == pytest.approx(1205.0)

    def test_all_negative_infinity(self):
        assert estimate_frequency(np.full(300, -np.inf), BIN_HZ) == 0.0

    def test_invalid_bin_width(self):
        assert estimate_frequency(peak_spectrum(120), 0.0) == 0.0

    def test_pure_and_non_mutating(self):
        """Same input, same output; the input is left untouched."""
        spectrum = peak_spectrum(170)
        spectrum[169] = -25.0
        spectrum[171] = -18.0
        original = spectrum.copy()
        first = estimate_frequency(spectrum, BIN_HZ, noise_gate=True)
        second = estimate_frequency(spectrum, BIN_HZ, noise_gate=True)
        assert first == second
        np.testing.assert_array_equal(spectrum, original)

    def test_accepts_plain_list(self):
        spectrum = list(peak_spectrum(200))
        assert estimate_frequency(spectrum, BIN_HZ) == pytest.approx(2000.0)


class TestSpectrumDb:
    """Tests for the Hann/FFT front end used by the waveform source."""

    def test_full_scale_sine_level(self):
        fft_size = 2048
        bw = bin_width(44100, fft_size)
        freq = 90 * bw
        t = np.arange(fft_size) / 44100
        frame = np.sin(2 * np.pi * freq * t)[np.newaxis, :]
        spectrum = spectrum_db(frame, fft_size)[0]
        assert spectrum[90] == pytest.approx(-6.02, abs=0.1)

    @pytest.mark.parametrize('freq', [1200.0, 1234.5, 1900.0, 2287.0])
    def test_zero_padded_estimate(self, freq):
        fft_size = 2048
        t = np.arange(256) / 44100
        frame = np.sin(2 * np.pi * freq * t)[np.newaxis, :]
        spectrum = spectrum_db(frame, fft_size, max_bins=160)[0]
        estimate = estimate_frequency(spectrum, bin_width(44100, fft_size))
        assert estimate == pytest.approx(freq, abs=3.0)

    def test_silence_is_gated(self):
        spectrum = spectrum_db(np.zeros((1, 256)), 2048)[0]
        assert estimate_frequency(spectrum, bin_width(44100, 2048), noise_gate=True) == 0.0


class TestValueMapping:
    """Tests for frequency <-> channel value mapping."""

    def test_black_and_white(self):
        assert freq_to_value(1500.0) == 0.0
        assert freq_to_value(2300.0) == 255.0

    def test_midpoint_not_rounded(self):
        assert freq_to_value(1900.0) == pytest.approx(127.5)

    def test_clamped(self):
        assert freq_to_value(1000.0) == 0.0
        assert freq_to_value(3000.0) == 255.0

    def test_value_to_freq_clamps(self):
        assert value_to_freq(-20.0) == pytest.approx(1500.0)
        assert value_to_freq(300.0) == pytest.approx(2300.0)
        assert value_to_freq(127.5) == pytest.approx(1900.0)


class TestColour:
    """Tests for colour conversions."""

    def test_neutral_yuv_is_mid_grey(self):
        assert yuv_to_rgb(128, 128, 128) == (128, 128, 128)

    def test_yuv_clamped(self):
        r, g, b = yuv_to_rgb(255, 128, 255)
        assert r == 255.0
        assert 0.0 <= g <= 255.0
        r, g, b = yuv_to_rgb(0, 0, 128)
        assert b == 0.0

    def test_grey_has_neutral_chroma(self):
        grey = np.full((2, 2, 3), 77, dtype=np.uint8)
        np.testing.assert_allclose(rgb_to_channel(grey, 'U'), 128.0, atol=1e-9)
        np.testing.assert_allclose(rgb_to_channel(grey, 'V'), 128.0, atol=1e-9)
        np.testing.assert_allclose(rgb_to_channel(grey, 'Y'), 77.0, atol=1e-9)

    def test_raw_channels(self):
        pixel = np.array([[10, 20, 30]], dtype=np.uint8)
        assert rgb_to_channel(pixel, 'R')[0] == 10
        assert rgb_to_channel(pixel, 'G')[0] == 20
        assert rgb_to_channel(pixel, 'B')[0] == 30
