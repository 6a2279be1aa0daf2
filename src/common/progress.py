"""Terminal progress rendering for long batch resolutions."""

from __future__ import annotations

import sys
import time
from typing import Optional, TextIO

_FULL_BLOCK = "█"
_EMPTY_BLOCK = "░"
_REFRESH_INTERVAL = 1 / 30


def text_progress_bar(progress: float, width: int) -> str:
    """Render ``progress`` (0..1) as a bar of exactly ``width`` cells.

    Partial cells use the eighth-block characters U+2589..U+258F.
    """
    proportion_done = max(0.0, min(progress, 1.0)) * width
    full_blocks = int(proportion_done)
    bar = _FULL_BLOCK * full_blocks
    if full_blocks < width:
        # -1 means no partial block; never 7 since the fraction stays below 1
        eighths = int((proportion_done - full_blocks) * 8) - 1
        bar += " " if eighths == -1 else chr(0x258F - eighths)
        bar += _EMPTY_BLOCK * (width - full_blocks - 1)
    return bar


class LogUpdate:
    """Rewrites a single status line in place, at most 30 times per second."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stderr
        self._prev_len = 0
        self._last_draw = 0.0
        self._pending: Optional[str] = None

    def print(self, text: str) -> None:
        now = time.monotonic()
        if now - self._last_draw < _REFRESH_INTERVAL:
            self._pending = text
            return
        self._draw(text)
        self._last_draw = now

    def stop(self) -> None:
        """Flush the latest text and end the line."""
        if self._pending is not None:
            self._draw(self._pending)
        self._stream.write("\n")
        self._stream.flush()

    def _draw(self, text: str) -> None:
        self._pending = None
        padding = " " * max(0, self._prev_len - len(text))
        self._stream.write("\r" + text + padding)
        self._stream.flush()
        self._prev_len = len(text)
