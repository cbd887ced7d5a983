"""Line rasterizer.

Turns one scanline's buffered per-channel samples into RGB pixels.
Columns that received no sample are filled with a per-encoding default.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .constants import CHROMA_DEFAULT, LUMA_DEFAULT, RGB_DEFAULT
from .dsp import yuv_to_rgb
from .modes import ColorEncoding, ModeTiming
from .session import LineBuffer


def _sample(column: Optional[Sequence[Optional[float]]], x: int,
            default: float) -> float:
    if column is None or x < 0 or x >= len(column):
        return default
    value = column[x]
    return default if value is None else value


def _chroma_count(column: Optional[Sequence[Optional[float]]],
                  timing: ModeTiming, name: str) -> int:
    """Number of chroma samples the line actually carries.

    Counts up to the last written slot, so a line cut short by the next
    sync is stretched across the full row. An unwritten channel falls
    back to the component width.
    """
    if column:
        for i in range(len(column) - 1, -1, -1):
            if column[i] is not None:
                return i + 1
    comp = timing.component(name)
    return comp.width if comp is not None else timing.width


def rasterize_line(buffer: LineBuffer, timing: ModeTiming) -> np.ndarray:
    """Convert a line buffer into one row of RGB pixels.

    Args:
        buffer: Channel name -> samples indexed by component column.
        timing: Mode the samples were collected in.

    Returns:
        (width, 3) uint8 array.
    """
    width = timing.width
    row = np.empty((width, 3), dtype=np.float64)
    encoding = timing.color_encoding

    if encoding == ColorEncoding.BW:
        luma = buffer.get('Y')
        for x in range(width):
            row[x] = _sample(luma, x, RGB_DEFAULT)

    elif encoding == ColorEncoding.YUV:
        luma = buffer.get('Y')
        u_col = buffer.get('U')
        v_col = buffer.get('V')
        u_count = _chroma_count(u_col, timing, 'U')
        v_count = _chroma_count(v_col, timing, 'V')
        for x in range(width):
            y = _sample(luma, x, LUMA_DEFAULT)
            u = _sample(u_col, x * u_count // width, CHROMA_DEFAULT)
            v = _sample(v_col, x * v_count // width, CHROMA_DEFAULT)
            row[x] = yuv_to_rgb(y, u, v)

    else:
        r_col = buffer.get('R')
        g_col = buffer.get('G')
        b_col = buffer.get('B')
        for x in range(width):
            row[x] = (
                _sample(r_col, x, RGB_DEFAULT),
                _sample(g_col, x, RGB_DEFAULT),
                _sample(b_col, x, RGB_DEFAULT),
            )

    return np.clip(np.rint(row), 0, 255).astype(np.uint8)
