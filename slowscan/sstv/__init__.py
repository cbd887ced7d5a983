"""SSTV (Slow-Scan Television) decoder and encoder package.

Decodes SSTV images from a stream of spectral snapshots with a sync-pulse
tracking state machine, and synthesizes phase-continuous SSTV audio from
images. Supports Robot 8 (B/W), Robot 36, Martin 1, Scottie 1 and
Wraase SC2-180.
"""

from .constants import SAMPLE_RATE
from .decoder import SSTVDecoder, get_sstv_decoder, reset_sstv_decoder
from .dsp import estimate_frequency, freq_to_value, yuv_to_rgb
from .encoder import ImageLoadError, SSTVEncoder, encode_image, write_wav
from .history import ImageHistory, get_image_history, reset_image_history
from .modes import ALL_MODES, ColorEncoding, Component, ModeTiming, SSTVMode, get_timing
from .session import (
    DecodedImage,
    DecoderSession,
    DecodeStartedEvent,
    ImageCompleteEvent,
    PixelEvent,
    RowEvent,
)
from .ticks import FrameClockSource, SpectrumFrame, WaveformSpectrumSource
from .tracker import step, step_frequency

__all__ = [
    'ALL_MODES',
    'ColorEncoding',
    'Component',
    'DecodeStartedEvent',
    'DecodedImage',
    'DecoderSession',
    'FrameClockSource',
    'ImageCompleteEvent',
    'ImageHistory',
    'ImageLoadError',
    'ModeTiming',
    'PixelEvent',
    'RowEvent',
    'SAMPLE_RATE',
    'SSTVDecoder',
    'SSTVEncoder',
    'SSTVMode',
    'SpectrumFrame',
    'WaveformSpectrumSource',
    'encode_image',
    'estimate_frequency',
    'freq_to_value',
    'get_image_history',
    'get_sstv_decoder',
    'get_timing',
    'reset_image_history',
    'reset_sstv_decoder',
    'step',
    'step_frequency',
    'write_wav',
    'yuv_to_rgb',
]
