"""
Edit History Module
Bounded linear undo/redo over image snapshots.

Pushing after an undo discards the redo branch (last writer wins). The oldest
entry is evicted once the history exceeds its maximum length. Not
thread-safe: callers must serialize push/undo/redo.
"""

from __future__ import annotations

import logging
from typing import Optional

from .runtime_defaults import DEFAULTS
from .texture_image import TextureImage

_LOGGER = logging.getLogger(__name__)


class EditHistory:
    """Snapshot stack with a current-position pointer (-1 when empty)."""

    def __init__(self, max_size: Optional[int] = None):
        size = DEFAULTS.max_history if max_size is None else max_size
        try:
            size = int(size)
        except (TypeError, ValueError):
            size = DEFAULTS.max_history
        self.max_size = max(1, size)
        self._entries: list[TextureImage] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    def push(self, image: Optional[TextureImage]) -> None:
        if image is None:
            return

        # Drop everything after the pointer (abandoned redo branch).
        if self._index < len(self._entries) - 1:
            del self._entries[self._index + 1:]

        self._entries.append(image.copy())
        self._index = len(self._entries) - 1

        while len(self._entries) > self.max_size:
            self._entries.pop(0)
            self._index -= 1

        _LOGGER.debug("history push: %d/%d (index=%d)", len(self._entries), self.max_size, self._index)

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[TextureImage]:
        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index].copy()

    def redo(self) -> Optional[TextureImage]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index].copy()

    def current(self) -> Optional[TextureImage]:
        if self._index < 0:
            return None
        return self._entries[self._index].copy()

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
