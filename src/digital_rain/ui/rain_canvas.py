"""Textual widget acting as the engine's display sink."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.widgets import Static

from digital_rain.glyphs import Color

CELL_WIDTH = 2
BLANK = " " * CELL_WIDTH
OVERLAY_STYLE = "bold #ffcc66 on #101010"

COLOR_STYLES: dict[Color, str] = {
    Color.WHITE: "bold bright_white",
    Color.LIGHT_GREEN: "bright_green",
    Color.DARK_GREEN: "green",
}


def columns_for_width(width: int) -> int:
    """Viewport columns that fit ``width`` terminal cells of full-width glyphs."""
    return max(1, width // CELL_WIDTH)


class RainCanvas(Static):
    """Cell grid written by the compositor and painted as rich text.

    Each viewport column spans two terminal cells because katakana glyphs
    are full width.
    """

    def __init__(self, columns: int = 1, rows: int = 1, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._columns = max(1, columns)
        self._rows = max(1, rows)
        self._grid: list[list[Optional[tuple[str, str]]]] = self._blank_grid()
        self._overlay: list[str] = []
        self.writes = 0
        self.clears = 0

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    def resize_grid(self, columns: int, rows: int) -> None:
        self._columns = max(1, columns)
        self._rows = max(1, rows)
        self._grid = self._blank_grid()
        self.refresh()

    def clear_all(self) -> None:
        self._grid = self._blank_grid()
        self.clears += 1
        self.refresh()

    def write_cell(
        self, x: int, y: int, codepoint: Optional[int], color: Optional[Color]
    ) -> None:
        if not (0 <= x < self._columns and 0 <= y < self._rows):
            return
        if codepoint is None:
            self._grid[y][x] = None
        else:
            style = COLOR_STYLES.get(color or Color.WHITE, "")
            self._grid[y][x] = (chr(codepoint), style)
        self.writes += 1
        self.refresh()

    def set_overlay(self, lines: list[str]) -> None:
        self._overlay = list(lines)
        self.refresh()

    def painted_cells(self) -> int:
        return sum(1 for row in self._grid for cell in row if cell is not None)

    def cell_at(self, x: int, y: int) -> Optional[tuple[str, str]]:
        if not (0 <= x < self._columns and 0 <= y < self._rows):
            return None
        return self._grid[y][x]

    def render(self) -> Text:
        width = self._columns * CELL_WIDTH
        output = Text(no_wrap=True, overflow="crop")
        for y, row in enumerate(self._grid):
            if y:
                output.append("\n")
            if y < len(self._overlay):
                output.append(self._overlay[y][:width].ljust(width), OVERLAY_STYLE)
                continue
            for cell in row:
                if cell is None:
                    output.append(BLANK)
                else:
                    output.append(cell[0], cell[1])
        return output

    def _blank_grid(self) -> list[list[Optional[tuple[str, str]]]]:
        return [[None] * self._columns for _ in range(self._rows)]
