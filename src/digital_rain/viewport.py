"""Fixed-size cell grid, frame rendering and minimal patches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from digital_rain.glyphs import Glyph
from digital_rain.stack import GlyphStack


@dataclass(frozen=True)
class CellUpdate:
    """One patch entry; ``glyph`` is None when the cell becomes blank."""

    x: int
    y: int
    glyph: Optional[Glyph]


Patch = list[CellUpdate]


class Viewport:
    """A ``width x height`` grid of optional glyphs, stored row-major."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(1, width)
        self.height = max(1, height)
        self._cells: list[Optional[Glyph]] = [None] * (self.width * self.height)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Viewport):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self._cells == other._cells
        )

    def __repr__(self) -> str:
        return f"Viewport({self.width}x{self.height}, filled={self.filled()})"

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[Glyph]:
        if not self.in_bounds(x, y):
            return None
        return self._cells[y * self.width + x]

    def set(self, x: int, y: int, glyph: Optional[Glyph]) -> None:
        if self.in_bounds(x, y):
            self._cells[y * self.width + x] = glyph

    def clear(self) -> None:
        self._cells = [None] * (self.width * self.height)

    def copy(self) -> "Viewport":
        clone = Viewport(self.width, self.height)
        clone._cells = list(self._cells)
        return clone

    def filled(self) -> int:
        return sum(1 for cell in self._cells if cell is not None)

    def cells(self) -> Iterator[tuple[int, int, Optional[Glyph]]]:
        for index, cell in enumerate(self._cells):
            yield index % self.width, index // self.width, cell

    def render(self, stacks: Iterable[GlyphStack]) -> None:
        """Paint stacks into a cleared grid.

        Stacks with the highest ``min_y`` go first so the ones nearer the
        top are painted last and win shared cells.
        """
        self.clear()
        for stack in sorted(stacks, key=lambda s: s.min_y, reverse=True):
            if not 0 <= stack.x < self.width:
                continue
            for offset, glyph in enumerate(stack.glyphs):
                self.set(stack.x, stack.min_y + offset, glyph)

    def diff(self, other: "Viewport") -> Patch:
        """Return the updates that turn this grid into ``other``."""
        if (self.width, self.height) != (other.width, other.height):
            raise ValueError(
                f"Viewport size mismatch: {self.width}x{self.height} "
                f"vs {other.width}x{other.height}"
            )
        patch: Patch = []
        width = self.width
        for index, (old, new) in enumerate(zip(self._cells, other._cells)):
            if old != new:
                patch.append(CellUpdate(index % width, index // width, new))
        return patch

    def apply(self, patch: Iterable[CellUpdate]) -> None:
        for update in patch:
            self.set(update.x, update.y, update.glyph)
