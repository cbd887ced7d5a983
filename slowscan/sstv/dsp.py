"""DSP utilities for SSTV decoding and encoding.

Dominant-frequency estimation from a spectral magnitude snapshot,
frequency/luminance mapping and the colour-space conversions shared by
the rasterizer and the tone synthesizer.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .constants import (
    FREQ_BLACK,
    FREQ_RANGE,
    NO_SIGNAL,
    NOISE_FLOOR_DB,
    SEARCH_FREQ_HIGH,
    SEARCH_FREQ_LOW,
)


def bin_width(sample_rate: float, fft_size: int) -> float:
    """Width of one spectral bin in Hz."""
    return sample_rate / fft_size


def search_band(bin_width_hz: float, length: int) -> tuple[int, int]:
    """Bin range [start, end) covering the SSTV tone band.

    The end is clipped to the buffer length, so a short spectrum yields a
    narrower (possibly empty) band rather than out-of-range reads.
    """
    start = int(math.floor(SEARCH_FREQ_LOW / bin_width_hz))
    end = int(math.ceil(SEARCH_FREQ_HIGH / bin_width_hz))
    return start, min(end, length)


def parabolic_offset(alpha: float, beta: float, gamma: float) -> float:
    """Sub-bin peak offset from three adjacent magnitudes.

    A zero denominator (flat peak) is replaced by 1, which gives an
    offset of exactly 0 for alpha == beta == gamma.
    """
    denom = alpha - 2.0 * beta + gamma
    if denom == 0 or math.isnan(denom):
        denom = 1.0
    p = 0.5 * (alpha - gamma) / denom
    if not math.isfinite(p):
        return 0.0
    return p


def estimate_frequency(spectrum_db: Sequence[float] | np.ndarray,
                       bin_width_hz: float,
                       noise_gate: bool = False) -> float:
    """Estimate the dominant tone in one spectral snapshot.

    Searches the 800-2800 Hz band for the loudest bin and refines it with
    parabolic interpolation over the peak and its neighbours.

    Args:
        spectrum_db: Magnitudes in dB, one per bin starting at 0 Hz.
        bin_width_hz: Width of one bin in Hz.
        noise_gate: Treat peaks below -90 dB as silence.

    Returns:
        Estimated frequency in Hz, or 0.0 when there is no usable signal.
    """
    spectrum = np.asarray(spectrum_db, dtype=np.float64)
    n = len(spectrum)
    if n == 0 or bin_width_hz <= 0:
        return NO_SIGNAL

    start, end = search_band(bin_width_hz, n)
    if start >= end:
        return NO_SIGNAL

    band = spectrum[start:end]
    # -inf and NaN never win; a band made only of them has no peak
    valid = band > -np.inf
    if not valid.any():
        return NO_SIGNAL
    peak = start + int(np.argmax(np.where(valid, band, -np.inf)))

    beta = float(spectrum[peak])
    if noise_gate and beta < NOISE_FLOOR_DB:
        return NO_SIGNAL

    alpha = float(spectrum[peak - 1]) if peak > 0 else beta
    gamma = float(spectrum[peak + 1]) if peak < n - 1 else beta

    return (peak + parabolic_offset(alpha, beta, gamma)) * bin_width_hz


def freq_to_value(frequency: float) -> float:
    """Convert SSTV audio frequency to a channel value in [0, 255].

    Linear mapping: 1500 Hz = 0 (black), 2300 Hz = 255 (white). The result
    is not rounded.
    """
    value = (frequency - FREQ_BLACK) / FREQ_RANGE * 255.0
    return max(0.0, min(255.0, value))


def value_to_freq(value: float | np.ndarray) -> float | np.ndarray:
    """Convert channel value(s) to tone frequency; values are clamped first."""
    return FREQ_BLACK + np.clip(value, 0.0, 255.0) / 255.0 * FREQ_RANGE


def yuv_to_rgb(y: float, u: float, v: float) -> tuple[float, float, float]:
    """Convert one Y/U/V sample to RGB, each channel clamped to [0, 255]."""
    r = y + 1.402 * (v - 128)
    g = y - 0.34414 * (u - 128) - 0.71414 * (v - 128)
    b = y + 1.772 * (u - 128)
    return (
        max(0.0, min(255.0, r)),
        max(0.0, min(255.0, g)),
        max(0.0, min(255.0, b)),
    )


def rgb_to_channel(rgb: np.ndarray, name: str) -> np.ndarray:
    """Extract one transmitted channel from an (..., 3) RGB array.

    Args:
        rgb: RGB pixels, any float or integer dtype.
        name: One of Y, U, V, R, G, B.

    Returns:
        Float64 channel values (not clamped).
    """
    rgb = rgb.astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    if name == 'Y':
        return 0.299 * r + 0.587 * g + 0.114 * b
    if name == 'U':
        return 128.0 - 0.1687 * r - 0.3313 * g + 0.5 * b
    if name == 'V':
        return 128.0 + 0.5 * r - 0.4187 * g - 0.0813 * b
    if name == 'R':
        return r
    if name == 'G':
        return g
    if name == 'B':
        return b
    return np.full(r.shape, 128.0)


def spectrum_db(frames: np.ndarray, fft_size: int,
                max_bins: int | None = None) -> np.ndarray:
    """Hann-windowed magnitude spectrum in dB for a batch of frames.

    Magnitudes are normalised so a full-scale sine peaks near -6 dB.

    Args:
        frames: Shape (M, N) audio frames, N <= fft_size (zero padded).
        fft_size: Transform length.
        max_bins: Keep only the first max_bins bins.

    Returns:
        Shape (M, bins) float64 array of dB values.
    """
    n = frames.shape[-1]
    window = np.hanning(n)
    spectrum = np.abs(np.fft.rfft(frames * window, n=fft_size, axis=-1))
    if max_bins is not None:
        spectrum = spectrum[..., :max_bins]
    spectrum /= window.sum()
    return 20.0 * np.log10(np.maximum(spectrum, 1e-12))
