"""Line sync tracker.

Pure step functions that advance a DecoderSession by one tick. Each tick
carries one frequency estimate (or one spectral snapshot) and a timestamp
in milliseconds, and yields the next session plus the events it caused.

State machine: IDLE -> DECODING -> (height lines) -> IDLE

A sync pulse is accepted once more than SYNC_STRIKE_THRESHOLD consecutive
samples sit near 1200 Hz and, while decoding, at least 80% of a line has
elapsed since the previous accepted sync. Samples in the pixel band are
placed into the current line buffer by their time offset from that sync.
"""

from __future__ import annotations

import dataclasses
from typing import Sequence

import numpy as np

from slowscan.logging import get_logger

from .constants import (
    CONFIDENCE_DECAY,
    CONFIDENCE_MAX,
    CONFIDENCE_STEP,
    FREQ_SYNC,
    PIXEL_FREQ_MAX,
    PIXEL_FREQ_MIN,
    SYNC_LINE_FRACTION,
    SYNC_STRIKE_DECAY,
    SYNC_STRIKE_THRESHOLD,
    SYNC_TOLERANCE_HZ,
)
from .dsp import estimate_frequency, freq_to_value
from .rasterizer import rasterize_line
from .session import (
    DecodedImage,
    DecodeEvent,
    DecoderSession,
    DecodeStartedEvent,
    ImageCompleteEvent,
    PixelEvent,
    RowEvent,
    new_line_buffer,
    new_raster,
    with_sample,
)

logger = get_logger('slowscan.sstv.tracker')

StepResult = tuple[DecoderSession, list[DecodeEvent]]


def is_sync_tone(frequency: float) -> bool:
    return abs(frequency - FREQ_SYNC) < SYNC_TOLERANCE_HZ


def step(session: DecoderSession, spectrum_db: Sequence[float] | np.ndarray,
         timestamp: float, bin_width_hz: float,
         noise_gate: bool = False) -> StepResult:
    """Advance the session by one spectral snapshot.

    Args:
        session: Current session.
        spectrum_db: Magnitudes in dB, bin 0 at 0 Hz.
        timestamp: Snapshot time in milliseconds.
        bin_width_hz: Width of one spectral bin.
        noise_gate: Treat peaks under -90 dB as silence.

    Returns:
        Tuple of (next session, events emitted by this tick).
    """
    frequency = estimate_frequency(spectrum_db, bin_width_hz, noise_gate)
    return step_frequency(session, frequency, timestamp)


def step_frequency(session: DecoderSession, frequency: float,
                   timestamp: float) -> StepResult:
    """Advance the session by one frequency estimate.

    A frequency of 0 (no signal) is an ordinary miss.
    """
    events: list[DecodeEvent] = []

    if is_sync_tone(frequency):
        strike = session.strike_count + 1
        confidence = min(CONFIDENCE_MAX, session.confidence + CONFIDENCE_STEP)
        session = dataclasses.replace(
            session, strike_count=strike, confidence=confidence)

        elapsed = timestamp - session.last_line_timestamp
        min_gap = session.timing.total_line_time * SYNC_LINE_FRACTION
        if strike > SYNC_STRIKE_THRESHOLD and (
                elapsed > min_gap or not session.decoding):
            session = _accept_sync(session, timestamp, events)
        return session, events

    session = dataclasses.replace(
        session,
        strike_count=max(0.0, session.strike_count - SYNC_STRIKE_DECAY),
        confidence=max(0.0, session.confidence - CONFIDENCE_DECAY),
    )

    if session.decoding and PIXEL_FREQ_MIN <= frequency <= PIXEL_FREQ_MAX:
        session = _write_sample(session, frequency, timestamp, events)

    return session, events


def _accept_sync(session: DecoderSession, timestamp: float,
                 events: list[DecodeEvent]) -> DecoderSession:
    timing = session.timing
    decoding = session.decoding
    scan_row = session.scan_row
    raster = session.raster

    if not decoding:
        decoding = True
        scan_row = 0
        raster = new_raster(timing)
        events.append(DecodeStartedEvent(mode=session.mode, timestamp=timestamp))
        logger.debug(f"Sync lock at {timestamp:.1f} ms ({timing.name})")
    else:
        pixels = rasterize_line(session.line_buffer, timing)
        raster = raster.copy()
        raster[scan_row] = pixels
        events.append(RowEvent(y=scan_row, pixels=pixels))
        scan_row += 1

        if scan_row >= timing.height:
            image = DecodedImage.create(raster, session.mode)
            events.append(ImageCompleteEvent(image=image))
            logger.debug(f"Image complete ({timing.name}, id={image.id})")
            decoding = False
            scan_row = 0

    return dataclasses.replace(
        session,
        strike_count=0.0,
        last_line_timestamp=timestamp,
        scan_row=scan_row,
        decoding=decoding,
        line_buffer=new_line_buffer(timing),
        raster=raster,
    )


def _write_sample(session: DecoderSession, frequency: float, timestamp: float,
                  events: list[DecodeEvent]) -> DecoderSession:
    timing = session.timing
    elapsed = timestamp - session.last_line_timestamp
    header_end = timing.header_duration

    if not header_end < elapsed < timing.total_line_time:
        return session

    located = timing.component_at(elapsed - header_end)
    if located is None:
        return session
    comp, remainder = located

    x = int(remainder / comp.duration * comp.width)
    x = max(0, min(comp.width - 1, x))
    value = freq_to_value(frequency)

    events.append(_preview(x, session.scan_row, comp.name, value))
    return dataclasses.replace(
        session, line_buffer=with_sample(session.line_buffer, comp.name, x, value))


def _preview(x: int, y: int, channel: str, value: float) -> PixelEvent:
    level = int(round(value))
    if channel == 'R':
        return PixelEvent(x, y, level, 0, 0)
    if channel == 'G':
        return PixelEvent(x, y, 0, level, 0)
    if channel == 'B':
        return PixelEvent(x, y, 0, 0, level)
    return PixelEvent(x, y, level, level, level)
