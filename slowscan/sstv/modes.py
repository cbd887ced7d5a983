"""SSTV mode specifications.

Dataclass definitions for each supported SSTV mode: geometry, VIS code,
line timing and the ordered colour components sent on every scanline.
The registry is built once at import and never mutated.
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field

from .constants import FREQ_BLACK, FREQ_SYNC


class SSTVMode(enum.Enum):
    """Supported SSTV modes. The set is closed."""
    ROBOT8_BW = 'Robot 8 (B/W)'
    ROBOT36 = 'Robot 36'
    MARTIN1 = 'Martin 1'
    SCOTTIE1 = 'Scottie 1'
    WRAASE_SC2_180 = 'Wraase SC2-180'


class ColorEncoding(enum.Enum):
    """Colour encoding of the components of a scanline."""
    YUV = 'YUV'    # Luma + colour difference (Robot)
    RGB = 'RGB'    # Sequential colour channels (Martin, Scottie, Wraase)
    BW = 'BW'      # Luma only


@dataclass(frozen=True)
class Component:
    """One colour component within a scanline.

    Attributes:
        name: Channel name, one of Y, U, V, R, G, B.
        duration: Time spent on this component (ms).
        width: Number of samples (columns) sent for this component.
    """
    name: str
    duration: float
    width: int

    @property
    def pixel_time(self) -> float:
        """Duration of a single column (ms)."""
        return self.duration / self.width


@dataclass(frozen=True)
class ModeTiming:
    """Complete timing and geometry of an SSTV mode.

    All durations are in milliseconds.

    Attributes:
        name: Human-readable mode name.
        width: Image width in pixels.
        height: Image height in lines.
        vis_code: 7-bit VIS mode identifier.
        sync_freq: Horizontal sync tone (Hz).
        sync_duration: Horizontal sync duration.
        break_freq: Tone used for the break after sync and for gaps (Hz).
        break_duration: Break after the sync pulse.
        gap_duration: Separator expected after each component.
        total_line_time: Nominal duration of a scanline.
        color_encoding: How components combine into RGB.
        components: Components in transmission order.
        component_offsets: Start of each component measured from the end
            of the line header (sync + break). Computed at load.
    """
    name: str
    width: int
    height: int
    vis_code: int
    sync_freq: float
    sync_duration: float
    break_freq: float
    break_duration: float
    gap_duration: float
    total_line_time: float
    color_encoding: ColorEncoding
    components: tuple[Component, ...] = ()
    component_offsets: tuple[float, ...] = field(init=False, default=())

    def __post_init__(self) -> None:
        offsets = []
        t = 0.0
        for comp in self.components:
            offsets.append(t)
            t += comp.duration + self.gap_duration
        object.__setattr__(self, 'component_offsets', tuple(offsets))

    @property
    def header_duration(self) -> float:
        """Sync plus break, i.e. where pixel data starts in a line."""
        return self.sync_duration + self.break_duration

    @property
    def computed_line_time(self) -> float:
        return self.header_duration + sum(
            c.duration + self.gap_duration for c in self.components)

    def component(self, name: str) -> Component | None:
        for comp in self.components:
            if comp.name == name:
                return comp
        return None

    def component_at(self, local_time: float) -> tuple[Component, float] | None:
        """Find the component active at a time after the line header.

        Args:
            local_time: Milliseconds since the end of sync + break.

        Returns:
            Tuple of (component, time into that component), or None when
            the time falls in a gap or outside the line.
        """
        if local_time < 0:
            return None
        idx = bisect.bisect_right(self.component_offsets, local_time) - 1
        if idx < 0:
            return None
        comp = self.components[idx]
        remainder = local_time - self.component_offsets[idx]
        if remainder < comp.duration:
            return comp, remainder
        return None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'width': self.width,
            'height': self.height,
            'vis_code': self.vis_code,
            'color_encoding': self.color_encoding.value,
            'sync_duration_ms': self.sync_duration,
            'break_duration_ms': self.break_duration,
            'gap_duration_ms': self.gap_duration,
            'line_time_ms': self.total_line_time,
            'components': [
                {'name': c.name, 'duration_ms': c.duration, 'width': c.width}
                for c in self.components
            ],
        }


# ---------------------------------------------------------------------------
# Robot family
# ---------------------------------------------------------------------------

ROBOT_8_BW = ModeTiming(
    name='Robot 8 (B/W)',
    width=160,
    height=120,
    vis_code=2,
    sync_freq=FREQ_SYNC,
    sync_duration=10.0,
    break_freq=FREQ_BLACK,
    break_duration=0.0,
    gap_duration=0.0,
    total_line_time=66.66,
    color_encoding=ColorEncoding.BW,
    components=(
        Component('Y', 56.66, 160),
    ),
)

ROBOT_36 = ModeTiming(
    name='Robot 36',
    width=320,
    height=240,
    vis_code=8,
    sync_freq=FREQ_SYNC,
    sync_duration=9.0,
    break_freq=FREQ_BLACK,
    break_duration=3.0,
    gap_duration=1.5,
    total_line_time=148.5,
    color_encoding=ColorEncoding.YUV,
    components=(
        Component('Y', 88.0, 320),
        Component('V', 22.0, 160),
        Component('U', 22.0, 160),
    ),
)

# ---------------------------------------------------------------------------
# Martin / Scottie / Wraase
# ---------------------------------------------------------------------------

MARTIN_1 = ModeTiming(
    name='Martin 1',
    width=320,
    height=256,
    vis_code=44,
    sync_freq=FREQ_SYNC,
    sync_duration=4.862,
    break_freq=FREQ_BLACK,
    break_duration=0.572,
    gap_duration=0.572,
    total_line_time=446.446,
    color_encoding=ColorEncoding.RGB,
    components=(
        Component('G', 146.432, 320),
        Component('B', 146.432, 320),
        Component('R', 146.432, 320),
    ),
)

SCOTTIE_1 = ModeTiming(
    name='Scottie 1',
    width=320,
    height=256,
    vis_code=60,
    sync_freq=FREQ_SYNC,
    sync_duration=9.0,
    break_freq=FREQ_BLACK,
    break_duration=1.5,
    gap_duration=1.5,
    total_line_time=429.72,
    color_encoding=ColorEncoding.RGB,
    components=(
        Component('G', 138.24, 320),
        Component('B', 138.24, 320),
        Component('R', 138.24, 320),
    ),
)

WRAASE_SC2_180 = ModeTiming(
    name='Wraase SC2-180',
    width=320,
    height=256,
    vis_code=55,
    sync_freq=FREQ_SYNC,
    sync_duration=5.0,
    break_freq=FREQ_BLACK,
    break_duration=0.5,
    gap_duration=0.5,
    total_line_time=712.0,
    color_encoding=ColorEncoding.RGB,
    components=(
        Component('R', 235.0, 320),
        Component('G', 235.0, 320),
        Component('B', 235.0, 320),
    ),
)


# ---------------------------------------------------------------------------
# Mode registry
# ---------------------------------------------------------------------------

ALL_MODES: dict[SSTVMode, ModeTiming] = {
    SSTVMode.ROBOT8_BW: ROBOT_8_BW,
    SSTVMode.ROBOT36: ROBOT_36,
    SSTVMode.MARTIN1: MARTIN_1,
    SSTVMode.SCOTTIE1: SCOTTIE_1,
    SSTVMode.WRAASE_SC2_180: WRAASE_SC2_180,
}

MODE_BY_VIS: dict[int, SSTVMode] = {t.vis_code: m for m, t in ALL_MODES.items()}


def get_timing(mode: SSTVMode) -> ModeTiming:
    """Look up the timing table for a mode."""
    return ALL_MODES[mode]


def get_mode(vis_code: int) -> SSTVMode | None:
    """Look up an SSTV mode by its VIS code."""
    return MODE_BY_VIS.get(vis_code)


def get_mode_by_name(name: str) -> SSTVMode | None:
    """Look up an SSTV mode by display name or enum member name.

    Matching ignores case, spaces and punctuation, so 'Robot 36',
    'robot36' and 'ROBOT36' all resolve.
    """
    key = _normalize(name)
    for mode in SSTVMode:
        if key in (_normalize(mode.value), _normalize(mode.name)):
            return mode
    return None


def _normalize(name: str) -> str:
    return ''.join(ch for ch in name.lower() if ch.isalnum())
