"""
Runtime configuration for slowscan.

Values are read from the environment once at import time. Tests patch the
module-level constants directly.
"""

from __future__ import annotations

import os


def _get_env(key: str, default: str) -> str:
    return os.environ.get(f'SSTV_{key}', default)


def _get_env_int(key: str, default: int) -> int:
    try:
        return int(_get_env(key, str(default)))
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    try:
        return float(_get_env(key, str(default)))
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    value = _get_env(key, '').strip().lower()
    if not value:
        return default
    return value in ('1', 'true', 'yes', 'on')


# Logging
LOG_LEVEL = _get_env('LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Decoder
DEFAULT_MODE = _get_env('DEFAULT_MODE', 'Robot 36')
HISTORY_SIZE = _get_env_int('HISTORY_SIZE', 20)
NOISE_GATE = _get_env_bool('NOISE_GATE', True)

# Audio / spectral front end
SAMPLE_RATE = _get_env_int('SAMPLE_RATE', 44100)
FFT_SIZE = _get_env_int('FFT_SIZE', 2048)
TICK_INTERVAL_MS = _get_env_float('TICK_INTERVAL_MS', 16.0)
