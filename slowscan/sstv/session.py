"""Decoder session state, line buffers, decoded images and decode events.

A DecoderSession is an immutable value; the tracker produces a new one per
tick. Line buffers and rasters are copied on write and never mutated once
a session holding them has been returned.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional, Union

import numpy as np

from .modes import ModeTiming, SSTVMode, get_timing

# channel name -> one slot per component column, None where unwritten
LineBuffer = Mapping[str, list[Optional[float]]]


def new_line_buffer(timing: ModeTiming) -> dict[str, list[Optional[float]]]:
    """Create an empty line buffer sized to the mode's components."""
    return {comp.name: [None] * comp.width for comp in timing.components}


def with_sample(buffer: LineBuffer, name: str, x: int,
                value: float) -> dict[str, list[Optional[float]]]:
    """Return a copy of ``buffer`` with one column of one channel set."""
    column = list(buffer.get(name, ()))
    if x >= len(column):
        column.extend([None] * (x + 1 - len(column)))
    column[x] = value
    updated = dict(buffer)
    updated[name] = column
    return updated


def new_raster(timing: ModeTiming) -> np.ndarray:
    return np.zeros((timing.height, timing.width, 3), dtype=np.uint8)


@dataclass(frozen=True, eq=False)
class DecodedImage:
    """A completed SSTV image.

    Attributes:
        id: Random identifier.
        timestamp: Completion time (UTC).
        raster: (height, width, 3) uint8 RGB pixels, read-only.
        mode: Mode the image was decoded in.
    """
    id: str
    timestamp: datetime
    raster: np.ndarray
    mode: SSTVMode

    @classmethod
    def create(cls, raster: np.ndarray, mode: SSTVMode,
               timestamp: datetime | None = None) -> DecodedImage:
        frozen = np.array(raster, dtype=np.uint8, copy=True)
        frozen.flags.writeable = False
        return cls(
            id=uuid.uuid4().hex[:8],
            timestamp=timestamp or datetime.now(timezone.utc),
            raster=frozen,
            mode=mode,
        )

    @property
    def width(self) -> int:
        return int(self.raster.shape[1])

    @property
    def height(self) -> int:
        return int(self.raster.shape[0])

    def to_image(self):
        """Convert to a Pillow RGB image."""
        from PIL import Image
        return Image.fromarray(np.ascontiguousarray(self.raster), 'RGB')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'mode': self.mode.value,
            'width': self.width,
            'height': self.height,
        }


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodeStartedEvent:
    """Sync lock acquired; a new image begins at row 0."""
    mode: SSTVMode
    timestamp: float


@dataclass(frozen=True)
class PixelEvent:
    """Progressive preview of one written sample."""
    x: int
    y: int
    r: int
    g: int
    b: int


@dataclass(frozen=True, eq=False)
class RowEvent:
    """One scanline flushed into the raster."""
    y: int
    pixels: np.ndarray  # (width, 3) uint8


@dataclass(frozen=True, eq=False)
class ImageCompleteEvent:
    """All rows received."""
    image: DecodedImage


DecodeEvent = Union[DecodeStartedEvent, PixelEvent, RowEvent, ImageCompleteEvent]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class DecoderSession:
    """State of one decode, replaced (never mutated) on every tick.

    Attributes:
        mode: Mode being decoded.
        strike_count: Run-length score of in-tolerance sync samples.
        confidence: Sync confidence in [0, 100].
        last_line_timestamp: Time of the last accepted sync (ms).
        scan_row: Row the current line will be written to.
        decoding: True between the first accepted sync and completion.
        line_buffer: Samples collected for the current line.
        raster: Image under construction.
    """
    mode: SSTVMode
    strike_count: float = 0.0
    confidence: float = 0.0
    last_line_timestamp: float = 0.0
    scan_row: int = 0
    decoding: bool = False
    line_buffer: LineBuffer = field(default_factory=dict)
    raster: np.ndarray = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not self.line_buffer:
            object.__setattr__(self, 'line_buffer', new_line_buffer(self.timing))
        if self.raster is None:
            object.__setattr__(self, 'raster', new_raster(self.timing))

    @classmethod
    def start(cls, mode: SSTVMode) -> DecoderSession:
        """Create an idle session for a mode."""
        return cls(mode=mode)

    @property
    def timing(self) -> ModeTiming:
        return get_timing(self.mode)

    @property
    def progress_percent(self) -> int:
        height = self.timing.height
        return min(100, int(100 * self.scan_row / height)) if height else 0

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'decoding': self.decoding,
            'scan_row': self.scan_row,
            'total_rows': self.timing.height,
            'progress': self.progress_percent,
            'confidence': round(self.confidence, 1),
            'strike_count': round(self.strike_count, 2),
        }
