"""SSTV tone synthesizer.

Renders a raster image into a mono PCM waveform for a chosen mode: VIS
header followed by one sync/break/pixel-tone sequence per scanline.

A single phase accumulator runs across the whole waveform so tone
boundaries never jump in phase. Sample counts follow an ideal running
clock (each tone ends at round(t * sample_rate)) so fractional pixel
durations do not drift over a line.
"""

from __future__ import annotations

import io
import math
import os
import wave
from typing import BinaryIO, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from slowscan.logging import get_logger

from .constants import (
    FREQ_BREAK,
    FREQ_LEADER,
    FREQ_SYNC,
    SAMPLE_RATE,
    VIS_BREAK_DURATION,
    VIS_LEADER_DURATION,
    VIS_MARKER_DURATION,
    VIS_START_BIT_DURATION,
    VIS_STOP_BIT_DURATION,
)
from .dsp import rgb_to_channel, value_to_freq
from .modes import ColorEncoding, ModeTiming, SSTVMode, get_timing

logger = get_logger('slowscan.sstv.encoder')

TWO_PI = 2.0 * math.pi

ImageSource = Union[str, os.PathLike, BinaryIO, bytes, np.ndarray, Image.Image]


class ImageLoadError(ValueError):
    """The source image could not be opened or decoded."""


# ---------------------------------------------------------------------------
# Tone writer
# ---------------------------------------------------------------------------

class ToneWriter:
    """Phase-continuous sine tone generator.

    Usage::

        writer = ToneWriter(44100)
        writer.write_tone(1900, 0.3)
        samples = writer.samples()
    """

    def __init__(self, sample_rate: int = SAMPLE_RATE):
        self.sample_rate = sample_rate
        self._phase = 0.0
        self._clock = 0.0     # ideal elapsed time (s)
        self._count = 0       # samples emitted
        self._chunks: list[np.ndarray] = []

    @property
    def sample_count(self) -> int:
        return self._count

    @property
    def duration(self) -> float:
        """Ideal duration of everything written so far (s)."""
        return self._clock

    def write_tone(self, freq: float, duration_s: float) -> None:
        """Append one tone."""
        self.write_tones([freq], [duration_s])

    def write_tones(self, freqs: Sequence[float] | np.ndarray,
                    durations_s: Sequence[float] | np.ndarray) -> None:
        """Append a run of tones in order.

        Args:
            freqs: Tone frequencies (Hz).
            durations_s: Matching tone durations (s).
        """
        freqs = np.asarray(freqs, dtype=np.float64)
        durations = np.asarray(durations_s, dtype=np.float64)
        if freqs.size == 0:
            return

        ends_t = self._clock + np.cumsum(durations)
        ends = np.rint(ends_t * self.sample_rate).astype(np.int64)
        counts = np.diff(np.concatenate(([self._count], ends)))
        counts = np.maximum(counts, 0)
        total = int(counts.sum())

        self._clock = float(ends_t[-1])
        if total == 0:
            return

        steps = np.repeat(TWO_PI * freqs / self.sample_rate, counts)
        # sample k uses the phase before its own increment
        phases = self._phase + np.cumsum(steps) - steps
        self._chunks.append(np.sin(phases))

        self._phase = float((phases[-1] + steps[-1]) % TWO_PI)
        self._count += total

    def samples(self) -> np.ndarray:
        if not self._chunks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(self._chunks).astype(np.float32)


# ---------------------------------------------------------------------------
# Image loading
# ---------------------------------------------------------------------------

def load_image(source: ImageSource) -> Image.Image:
    """Open an image from a path, file object, bytes, array or PIL image.

    Raises:
        ImageLoadError: The image cannot be read or decoded.
    """
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, np.ndarray):
            return Image.fromarray(np.asarray(source, dtype=np.uint8))
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        image = Image.open(source)
        image.load()
        return image
    except (UnidentifiedImageError, OSError, ValueError, TypeError) as e:
        logger.warning(f"Failed to load image for encoding: {e}")
        raise ImageLoadError(f'Cannot load image: {e}') from e


def prepare_raster(source: ImageSource, timing: ModeTiming) -> np.ndarray:
    """Load an image and resize it to the mode's geometry.

    Returns:
        (height, width, 3) uint8 RGB array.
    """
    image = load_image(source).convert('RGB')
    size = (timing.width, timing.height)
    if image.size != size:
        image = image.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(image, dtype=np.uint8)


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------

def header_tones(vis_code: int) -> list[tuple[float, float]]:
    """VIS header as (frequency Hz, duration s) pairs."""
    return [
        (FREQ_LEADER, VIS_LEADER_DURATION),
        (FREQ_BREAK, VIS_BREAK_DURATION),
        (FREQ_LEADER, VIS_LEADER_DURATION),
        (FREQ_SYNC, VIS_START_BIT_DURATION),
        (FREQ_SYNC + vis_code, VIS_MARKER_DURATION),
        (FREQ_SYNC, VIS_STOP_BIT_DURATION),
    ]


def header_sample_count(sample_rate: int = SAMPLE_RATE) -> int:
    """Number of samples the VIS header occupies."""
    total = sum(d for _f, d in header_tones(0))
    return int(round(total * sample_rate))


class SSTVEncoder:
    """Encode images into SSTV audio for one mode."""

    def __init__(self, mode: SSTVMode, sample_rate: int = SAMPLE_RATE):
        self.mode = mode
        self.timing = get_timing(mode)
        self.sample_rate = sample_rate

    def encode(self, source: ImageSource) -> np.ndarray:
        """Synthesize the full transmission for an image.

        The image is loaded and resized before any audio is generated, so
        a load failure leaves nothing half-written.

        Raises:
            ImageLoadError: The image cannot be loaded.

        Returns:
            float32 samples in [-1, 1] at ``sample_rate``.
        """
        raster = prepare_raster(source, self.timing)
        return self.encode_raster(raster)

    def encode_raster(self, raster: np.ndarray) -> np.ndarray:
        """Synthesize from an RGB array already at the mode's geometry.

        Raises:
            ValueError: The array is not (height, width, 3) for this mode.
        """
        timing = self.timing
        expected = (timing.height, timing.width, 3)
        if raster.shape != expected:
            raise ValueError(
                f"{timing.name} needs a {expected} raster, got {raster.shape}")
        height, img_width = raster.shape[0], raster.shape[1]
        logger.info(f"Encoding {img_width}x{height} image as {timing.name}")

        writer = ToneWriter(self.sample_rate)
        freqs, durs = zip(*header_tones(timing.vis_code))
        writer.write_tones(freqs, durs)

        channel_freqs = []
        for comp in timing.components:
            src_x = (np.arange(comp.width) * img_width) // comp.width
            values = rgb_to_channel(raster[:, src_x], comp.name)
            channel_freqs.append(value_to_freq(values))

        line_freqs, line_durs = [], []
        for y in range(height):
            line_freqs.clear()
            line_durs.clear()
            line_freqs += [timing.sync_freq, timing.break_freq]
            line_durs += [timing.sync_duration / 1000, timing.break_duration / 1000]

            for comp, freqs_c in zip(timing.components, channel_freqs):
                line_freqs.extend(freqs_c[y])
                line_durs.extend([comp.pixel_time / 1000] * comp.width)
                # separator after luma only
                if timing.color_encoding == ColorEncoding.YUV and comp.name == 'Y':
                    line_freqs.append(timing.break_freq)
                    line_durs.append(timing.gap_duration / 1000)

            writer.write_tones(line_freqs, line_durs)

        samples = writer.samples()
        logger.info(
            f"Encoded {timing.name}: {len(samples)} samples "
            f"({writer.duration:.2f} s)")
        return samples


def encode_image(source: ImageSource, mode: SSTVMode,
                 sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Convenience wrapper around SSTVEncoder.encode()."""
    return SSTVEncoder(mode, sample_rate).encode(source)


# ---------------------------------------------------------------------------
# PCM output
# ---------------------------------------------------------------------------

def to_pcm16(samples: np.ndarray, gain: float = 1.0) -> np.ndarray:
    """Convert float samples to int16 PCM."""
    scaled = np.clip(np.asarray(samples, dtype=np.float64) * gain, -1.0, 1.0)
    return (scaled * 32767).astype(np.int16)


def write_wav(path: str | os.PathLike | BinaryIO, samples: np.ndarray,
              sample_rate: int = SAMPLE_RATE, gain: float = 1.0) -> None:
    """Write mono 16-bit WAV."""
    pcm = to_pcm16(samples, gain)
    with wave.open(path if not isinstance(path, os.PathLike) else str(path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
