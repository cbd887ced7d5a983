"""SSTV protocol constants.

Tone frequencies, VIS header timing, spectral search band and sync tracker
thresholds shared by the decoder and the encoder.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------
SAMPLE_RATE = 44100  # Hz - reference rate for synthesis

# ---------------------------------------------------------------------------
# SSTV tone frequencies (Hz)
# ---------------------------------------------------------------------------
FREQ_SYNC = 1200           # Horizontal sync pulse
FREQ_BREAK = 1200          # Break tone in VIS header (same as sync)
FREQ_LEADER = 1900         # Leader / calibration tone
FREQ_BLACK = 1500          # Black level
FREQ_WHITE = 2300          # White level
FREQ_RANGE = FREQ_WHITE - FREQ_BLACK

# ---------------------------------------------------------------------------
# VIS header (frequency Hz, duration s), in transmission order.
# The VIS marker tone is FREQ_SYNC + vis_code and sits between start and
# stop bits.
# ---------------------------------------------------------------------------
VIS_LEADER_DURATION = 0.300
VIS_BREAK_DURATION = 0.010
VIS_START_BIT_DURATION = 0.030
VIS_MARKER_DURATION = 0.100
VIS_STOP_BIT_DURATION = 0.030

# ---------------------------------------------------------------------------
# Spectral search band for frequency estimation (Hz)
# ---------------------------------------------------------------------------
SEARCH_FREQ_LOW = 800.0
SEARCH_FREQ_HIGH = 2800.0

# Noise gate: a peak below this level is treated as silence
NOISE_FLOOR_DB = -90.0

# Sentinel returned when no usable tone is present
NO_SIGNAL = 0.0

# ---------------------------------------------------------------------------
# Sync tracker
# ---------------------------------------------------------------------------
SYNC_TOLERANCE_HZ = 30.0
SYNC_STRIKE_THRESHOLD = 7      # strike count must exceed this
SYNC_STRIKE_DECAY = 0.2
SYNC_LINE_FRACTION = 0.8       # minimum fraction of a line between syncs

CONFIDENCE_STEP = 10.0
CONFIDENCE_DECAY = 0.3
CONFIDENCE_MAX = 100.0

# In-line pixel tones outside this window are ignored
PIXEL_FREQ_MIN = 1400.0
PIXEL_FREQ_MAX = 2600.0

# Fill values for columns that received no sample during a line
LUMA_DEFAULT = 128
CHROMA_DEFAULT = 128
RGB_DEFAULT = 0
