"""Double-buffered frame composition and display sink contract."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

from digital_rain.glyphs import Color
from digital_rain.stack import GlyphStack
from digital_rain.viewport import Patch, Viewport

logger = logging.getLogger(__name__)


class DisplaySink(Protocol):
    """The two operations the engine needs from a physical display."""

    def clear_all(self) -> None: ...

    def write_cell(
        self, x: int, y: int, codepoint: Optional[int], color: Optional[Color]
    ) -> None: ...


class DisplaySinkError(RuntimeError):
    """Raised when the display sink rejects a write."""


class Compositor:
    """Sole owner of the ``current`` and ``next`` viewports."""

    def __init__(self, width: int, height: int, sink: DisplaySink) -> None:
        self._sink = sink
        self._current = Viewport(width, height)
        self._next = Viewport(width, height)
        self._stale = False
        self.frames = 0
        self.cells_written = 0

    @property
    def current(self) -> Viewport:
        return self._current

    @property
    def next(self) -> Viewport:
        return self._next

    @property
    def width(self) -> int:
        return self._current.width

    @property
    def height(self) -> int:
        return self._current.height

    @property
    def stale(self) -> bool:
        return self._stale

    def flush(self, stacks: Iterable[GlyphStack]) -> Patch:
        """Render, diff, push the patch to the sink and rotate buffers."""
        if self._stale:
            logger.info("Display out of sync; repainting full frame")
            self.wipe()
        self._next.render(stacks)
        patch = self._current.diff(self._next)
        self.apply_patch(patch)
        self._current, self._next = self._next, self._current
        self._next.clear()
        self.frames += 1
        return patch

    def apply_patch(self, patch: Patch) -> None:
        try:
            for update in patch:
                glyph = update.glyph
                if glyph is None:
                    self._sink.write_cell(update.x, update.y, None, None)
                else:
                    self._sink.write_cell(update.x, update.y, glyph.value, glyph.color)
                self.cells_written += 1
        except Exception as exc:
            self._stale = True
            raise DisplaySinkError(f"Display write failed: {exc}") from exc

    def wipe(self) -> None:
        """Clear the physical display and forget what was drawn."""
        try:
            self._sink.clear_all()
        except Exception as exc:
            self._stale = True
            raise DisplaySinkError(f"Display clear failed: {exc}") from exc
        self._current.clear()
        self._next.clear()
        self._stale = False
