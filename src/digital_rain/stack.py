"""Falling glyph stacks and their update state machine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from digital_rain.glyphs import (
    Color,
    Glyph,
    RandomSource,
    random_codepoint,
    random_glyph,
)

DEFAULT_INTERVAL_RANGE = (0.05, 0.25)
DEFAULT_LENGTH_RATIO = 0.75
DEFAULT_MUTATION_CHANCE = 0.05


class StackState(str, Enum):
    GROWING = "growing"
    STEADY = "steady"
    EXPIRING = "expiring"


def max_stack_length(viewport_height: int, ratio: float = DEFAULT_LENGTH_RATIO) -> int:
    """Largest length a stack may draw for the given viewport height."""
    return max(1, int(viewport_height * ratio))


@dataclass(eq=False)
class GlyphStack:
    """One falling column: ordered glyphs (tail first) plus timing state.

    Glyph ``i`` occupies row ``min_y + i``; the last glyph is the head.
    ``update_interval`` and ``last_update`` share the clock's unit.
    """

    x: int
    length: int
    update_interval: float
    last_update: float
    viewport_height: int
    glyphs: list[Glyph] = field(default_factory=list)
    min_y: int = 0
    max_y: int = 0
    expiring: bool = False

    def __post_init__(self) -> None:
        self.length = max(1, self.length)

    @classmethod
    def spawn(
        cls,
        x: int,
        viewport_height: int,
        now: float,
        rng: RandomSource,
        *,
        interval_range: tuple[float, float] = DEFAULT_INTERVAL_RANGE,
        length_ratio: float = DEFAULT_LENGTH_RATIO,
    ) -> "GlyphStack":
        """Create a stack at column ``x`` holding a single white glyph at row 0."""
        length = rng.uniform_int(1, max_stack_length(viewport_height, length_ratio))
        low, high = interval_range
        update_interval = rng.uniform(low, high)
        return cls(
            x=x,
            length=length,
            update_interval=update_interval,
            last_update=now,
            viewport_height=viewport_height,
            glyphs=[random_glyph(rng)],
        )

    @property
    def state(self) -> StackState:
        if self.expiring:
            return StackState.EXPIRING
        if len(self.glyphs) < self.length:
            return StackState.GROWING
        return StackState.STEADY

    @property
    def head(self) -> Glyph:
        return self.glyphs[-1]

    def is_due(self, now: float) -> bool:
        return now - self.last_update >= self.update_interval

    def is_expired(self) -> bool:
        return self.expiring

    def middle_index(self) -> int:
        """Index of the glyph ``len // 2`` steps behind the head."""
        return len(self.glyphs) - 1 - len(self.glyphs) // 2

    def tick(
        self,
        now: float,
        rng: RandomSource,
        *,
        mutation_chance: float = DEFAULT_MUTATION_CHANCE,
    ) -> None:
        """Advance the stack by one row.

        The steps run in a fixed order: push a white head, demote the old
        head to light green, pop the tail once over ``length``, darken the
        middle glyph, move the bounds, mutate older glyphs, then check the
        bottom edge.
        """
        glyphs = self.glyphs
        glyphs.append(random_glyph(rng))
        glyphs[-2] = replace(glyphs[-2], color=Color.LIGHT_GREEN)

        popped = False
        if len(glyphs) > self.length:
            del glyphs[0]
            popped = True

        if len(glyphs) > 2:
            mid = self.middle_index()
            if glyphs[mid].color is not Color.DARK_GREEN:
                glyphs[mid] = replace(glyphs[mid], color=Color.DARK_GREEN)

        self.max_y += 1
        if popped:
            self.min_y += 1

        for index in range(len(glyphs) - 1):
            if rng.bernoulli(mutation_chance):
                glyphs[index] = replace(glyphs[index], value=random_codepoint(rng))

        self.last_update = now
        if self.min_y > self.viewport_height - 1:
            self.expiring = True
