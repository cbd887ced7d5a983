"""SSTV decoder.

Stateful wrapper around the tracker's pure step functions: owns the
current DecoderSession, dispatches decode events to callbacks, and files
completed images into the history.

Usage::

    decoder = SSTVDecoder(SSTVMode.ROBOT36)
    decoder.start()
    for frame in source:
        decoder.process_spectrum(frame.spectrum, frame.timestamp, bin_width_hz)
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

import numpy as np

from slowscan import config
from slowscan.logging import get_logger

from .history import ImageHistory, get_image_history
from .modes import SSTVMode, get_mode_by_name
from .session import (
    DecodedImage,
    DecodeEvent,
    DecoderSession,
    DecodeStartedEvent,
    ImageCompleteEvent,
    RowEvent,
)
from .ticks import SpectrumFrame, WaveformSpectrumSource
from .tracker import step, step_frequency

logger = get_logger('slowscan.sstv.decoder')

# Progress callback: (current_line, total_lines)
ProgressCallback = Callable[[int, int], None]
EventCallback = Callable[[DecodeEvent], None]


def default_mode() -> SSTVMode:
    """Mode named by SSTV_DEFAULT_MODE, falling back to Robot 36."""
    mode = get_mode_by_name(config.DEFAULT_MODE)
    if mode is None:
        logger.warning(f"Unknown default mode '{config.DEFAULT_MODE}', using Robot 36")
        return SSTVMode.ROBOT36
    return mode


class SSTVDecoder:
    """Decode SSTV images from a stream of spectral snapshots."""

    def __init__(self, mode: Optional[SSTVMode] = None,
                 noise_gate: Optional[bool] = None,
                 history: Optional[ImageHistory] = None,
                 event_cb: Optional[EventCallback] = None,
                 progress_cb: Optional[ProgressCallback] = None):
        self._mode = mode or default_mode()
        self.noise_gate = config.NOISE_GATE if noise_gate is None else noise_gate
        self.history = history if history is not None else get_image_history()
        self._event_cb = event_cb
        self._progress_cb = progress_cb

        self._session = DecoderSession.start(self._mode)
        self._running = False
        self._images_decoded = 0

    @property
    def mode(self) -> SSTVMode:
        return self._mode

    @property
    def session(self) -> DecoderSession:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_decoding(self) -> bool:
        return self._session.decoding

    @property
    def images_decoded(self) -> int:
        return self._images_decoded

    def start(self) -> None:
        """Begin listening with a fresh session."""
        self._session = DecoderSession.start(self._mode)
        self._running = True
        logger.info(f"SSTV decoder started ({self._mode.value})")

    def stop(self) -> None:
        """Stop listening and discard any partial image."""
        if self._session.decoding:
            logger.info(
                f"SSTV decoder stopped mid-image at row {self._session.scan_row}")
        else:
            logger.info("SSTV decoder stopped")
        self._running = False
        self._session = DecoderSession.start(self._mode)

    def set_mode(self, mode: SSTVMode) -> None:
        """Switch mode; the current session is discarded."""
        if mode == self._mode:
            return
        self._mode = mode
        self._session = DecoderSession.start(mode)
        logger.info(f"SSTV mode set to {mode.value}")

    def process_spectrum(self, spectrum_db: np.ndarray, timestamp: float,
                         bin_width_hz: float) -> list[DecodeEvent]:
        """Process one tick's spectrum. Ignored while stopped."""
        if not self._running:
            return []
        self._session, events = step(
            self._session, spectrum_db, timestamp, bin_width_hz, self.noise_gate)
        self._dispatch(events)
        return events

    def process_frequency(self, frequency: float,
                          timestamp: float) -> list[DecodeEvent]:
        """Process one tick's frequency estimate. Ignored while stopped."""
        if not self._running:
            return []
        self._session, events = step_frequency(self._session, frequency, timestamp)
        self._dispatch(events)
        return events

    def run(self, source: Iterable[SpectrumFrame],
            bin_width_hz: float) -> list[DecodedImage]:
        """Drive the decoder from a tick source until it ends or stop().

        Returns:
            Images completed during this run, oldest first.
        """
        if not self._running:
            self.start()
        completed: list[DecodedImage] = []
        for frame in source:
            if not self._running:
                break
            for event in self.process_spectrum(frame.spectrum, frame.timestamp,
                                               bin_width_hz):
                if isinstance(event, ImageCompleteEvent):
                    completed.append(event.image)
        return completed

    def decode_waveform(self, samples: np.ndarray,
                        sample_rate: int = config.SAMPLE_RATE,
                        **source_kwargs) -> list[DecodedImage]:
        """Decode a recorded waveform.

        Keyword arguments are passed to WaveformSpectrumSource.
        """
        source = WaveformSpectrumSource(samples, sample_rate, **source_kwargs)
        logger.debug(
            f"Decoding {len(samples)} samples as {len(source)} ticks "
            f"({source.tick_interval_ms:.2f} ms)")
        return self.run(source, source.bin_width_hz)

    def get_status(self) -> dict:
        status = self._session.to_dict()
        status['running'] = self._running
        status['images_decoded'] = self._images_decoded
        status['noise_gate'] = self.noise_gate
        return status

    def _dispatch(self, events: list[DecodeEvent]) -> None:
        for event in events:
            if isinstance(event, DecodeStartedEvent):
                logger.info(f"Sync lock acquired, decoding {event.mode.value}")
            elif isinstance(event, RowEvent):
                if self._progress_cb:
                    self._progress_cb(event.y + 1, self._session.timing.height)
            elif isinstance(event, ImageCompleteEvent):
                self.history.add(event.image)
                self._images_decoded += 1
                logger.info(
                    f"Image complete: {event.image.mode.value} id={event.image.id}")

            if self._event_cb:
                self._event_cb(event)


_decoder: Optional[SSTVDecoder] = None


def get_sstv_decoder() -> SSTVDecoder:
    """Get or create the shared decoder instance."""
    global _decoder
    if _decoder is None:
        _decoder = SSTVDecoder()
    return _decoder


def reset_sstv_decoder() -> None:
    """Stop and drop the shared decoder instance."""
    global _decoder
    if _decoder is not None and _decoder.is_running:
        _decoder.stop()
    _decoder = None
