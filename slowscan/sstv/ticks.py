"""Tick sources for the decoder.

A tick source is any iterable of SpectrumFrame. The decoder processes
exactly one frame per tick and never looks at audio directly, so the same
loop runs from a live capture paced by a coarse clock, from a recorded
waveform, or from a test harness.
"""

from __future__ import annotations

import time
from typing import Callable, Iterator, NamedTuple, Optional

import numpy as np

from slowscan import config

from .dsp import bin_width, spectrum_db


class SpectrumFrame(NamedTuple):
    """One spectral snapshot and the time it was taken (ms)."""
    spectrum: np.ndarray
    timestamp: float


class WaveformSpectrumSource:
    """Slide a Hann-windowed FFT across a recorded waveform.

    Each frame is stamped with the time of its window centre, so the
    sample clock drives the decoder instead of a wall clock.

    Args:
        samples: Mono audio samples.
        sample_rate: Sample rate (Hz).
        window_size: Samples per analysis window.
        fft_size: Transform length (zero padded), sets the bin width.
        hop: Samples between successive windows.
        max_freq: Bins above this frequency are dropped.
        start_ms: Timestamp offset added to every frame.
    """

    # Frames transformed per numpy batch
    _CHUNK_FRAMES = 2048

    def __init__(self, samples: np.ndarray, sample_rate: int = config.SAMPLE_RATE,
                 window_size: int = 256, fft_size: int = config.FFT_SIZE,
                 hop: int = 8, max_freq: float = 3200.0, start_ms: float = 0.0):
        if window_size > fft_size:
            raise ValueError('window_size must not exceed fft_size')
        if hop < 1:
            raise ValueError('hop must be at least 1 sample')
        self.samples = np.asarray(samples, dtype=np.float64)
        self.sample_rate = sample_rate
        self.window_size = window_size
        self.fft_size = fft_size
        self.hop = hop
        self.start_ms = start_ms
        self.bin_width_hz = bin_width(sample_rate, fft_size)
        self._max_bins = min(fft_size // 2 + 1,
                             int(np.ceil(max_freq / self.bin_width_hz)) + 2)

    @property
    def frame_count(self) -> int:
        if len(self.samples) < self.window_size:
            return 0
        return (len(self.samples) - self.window_size) // self.hop + 1

    @property
    def tick_interval_ms(self) -> float:
        return 1000.0 * self.hop / self.sample_rate

    def __len__(self) -> int:
        return self.frame_count

    def __iter__(self) -> Iterator[SpectrumFrame]:
        total = self.frame_count
        if total == 0:
            return
        windows = np.lib.stride_tricks.sliding_window_view(
            self.samples, self.window_size)[::self.hop]
        centre = self.window_size / 2.0

        for first in range(0, total, self._CHUNK_FRAMES):
            batch = windows[first:first + self._CHUNK_FRAMES]
            spectra = spectrum_db(batch, self.fft_size, self._max_bins)
            for i, spectrum in enumerate(spectra):
                start = (first + i) * self.hop
                timestamp = self.start_ms + 1000.0 * (start + centre) / self.sample_rate
                yield SpectrumFrame(spectrum, timestamp)


class FrameClockSource:
    """Pull snapshots from a capture callable at a fixed, coarse cadence.

    Every tick captures one spectrum and stamps it with the clock at
    capture time. Nothing aligns ticks to the audio, so line timing
    inherits up to one interval of jitter.

    Args:
        capture: Returns the current spectrum in dB, or None when the
            capture has ended.
        interval_ms: Tick period.
        clock: Returns seconds; defaults to time.monotonic.
        sleep: Sleeps for seconds; defaults to time.sleep.
        max_ticks: Stop after this many ticks.
    """

    def __init__(self, capture: Callable[[], Optional[np.ndarray]],
                 interval_ms: float = config.TICK_INTERVAL_MS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 max_ticks: Optional[int] = None):
        self.capture = capture
        self.interval_ms = interval_ms
        self.clock = clock
        self.sleep = sleep
        self.max_ticks = max_ticks

    def __iter__(self) -> Iterator[SpectrumFrame]:
        ticks = 0
        next_tick = self.clock()
        while self.max_ticks is None or ticks < self.max_ticks:
            spectrum = self.capture()
            if spectrum is None:
                return
            yield SpectrumFrame(np.asarray(spectrum), self.clock() * 1000.0)
            ticks += 1

            next_tick += self.interval_ms / 1000.0
            delay = next_tick - self.clock()
            if delay > 0:
                self.sleep(delay)
            else:
                # fell behind: drop missed ticks rather than bursting
                next_tick = self.clock()
