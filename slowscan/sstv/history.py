"""
Bounded history of decoded SSTV images.

Newest first. Once capacity is reached the oldest image is dropped.
Written only by image-complete events; reads may come from other threads
(the HTTP status routes), so access is guarded by a lock.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Optional

from slowscan import config

from .session import DecodedImage


class ImageHistory:
    """Newest-first bounded list of DecodedImage."""

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = config.HISTORY_SIZE
        if capacity < 1:
            raise ValueError('History capacity must be at least 1')
        self.capacity = capacity
        self._images: deque[DecodedImage] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add(self, image: DecodedImage) -> None:
        """Insert an image at the front, evicting the oldest if full."""
        with self._lock:
            self._images.appendleft(image)

    def get(self, image_id: str) -> Optional[DecodedImage]:
        with self._lock:
            for image in self._images:
                if image.id == image_id:
                    return image
        return None

    def latest(self) -> Optional[DecodedImage]:
        with self._lock:
            return self._images[0] if self._images else None

    def images(self) -> list[DecodedImage]:
        """Snapshot of the history, newest first."""
        with self._lock:
            return list(self._images)

    def clear(self) -> None:
        with self._lock:
            self._images.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)


_history: Optional[ImageHistory] = None


def get_image_history() -> ImageHistory:
    """Get or create the shared history instance."""
    global _history
    if _history is None:
        _history = ImageHistory()
    return _history


def reset_image_history() -> None:
    """Reset the shared history instance."""
    global _history
    if _history is not None:
        _history.clear()
    _history = None
