"""The live set of glyph stacks: spawning, ticking and pruning."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from digital_rain.glyphs import RandomSource
from digital_rain.stack import (
    DEFAULT_INTERVAL_RANGE,
    DEFAULT_LENGTH_RATIO,
    DEFAULT_MUTATION_CHANCE,
    GlyphStack,
)

logger = logging.getLogger(__name__)

MIN_DENSITY = 0.1
MAX_DENSITY = 1.0
DENSITY_STEP = 0.1


@dataclass(frozen=True)
class DebugInfo:
    """Snapshot shown by the debug overlay."""

    density: float = 0.0
    update_delay_ms: int = 0
    updates_per_sec: float = 0.0
    glyphs_per_sec: float = 0.0
    glyphs_per_update: int = 0
    stacks_per_update: int = 0
    live_stacks: int = 0
    min_glyph_delay_ms: int = 0
    max_glyph_delay_ms: int = 0

    def lines(self) -> list[str]:
        return [
            f"density: {self.density:.1f}",
            f"update delay: {self.update_delay_ms}ms",
            f"updates/s: {self.updates_per_sec:.1f}",
            f"glyphs/s: {self.glyphs_per_sec:.1f}",
            f"glyphs/update: {self.glyphs_per_update}",
            f"stacks/update: {self.stacks_per_update}",
            f"live stacks: {self.live_stacks}",
            f"glyph delay: {self.min_glyph_delay_ms}-{self.max_glyph_delay_ms}ms",
        ]


def clamp_density(value: float) -> float:
    return round(max(MIN_DENSITY, min(MAX_DENSITY, value)), 2)


class StackField:
    """Owns every live stack and drives their updates."""

    def __init__(
        self,
        width: int,
        height: int,
        rng: RandomSource,
        *,
        density: float = 0.5,
        interval_range: tuple[float, float] = DEFAULT_INTERVAL_RANGE,
        length_ratio: float = DEFAULT_LENGTH_RATIO,
        mutation_chance: float = DEFAULT_MUTATION_CHANCE,
    ) -> None:
        self.width = max(1, width)
        self.height = max(1, height)
        self.density = clamp_density(density)
        self.stacks: list[GlyphStack] = []
        self._rng = rng
        self._interval_range = interval_range
        self._length_ratio = length_ratio
        self._mutation_chance = mutation_chance
        self.last_spawned = 0
        self.last_ticked = 0

    def __len__(self) -> int:
        return len(self.stacks)

    def spawn(self, x: int, now: float) -> GlyphStack:
        stack = GlyphStack.spawn(
            x,
            self.height,
            now,
            self._rng,
            interval_range=self._interval_range,
            length_ratio=self._length_ratio,
        )
        self.stacks.append(stack)
        logger.debug(
            "Spawned stack x=%s length=%s interval=%.3f",
            x,
            stack.length,
            stack.update_interval,
        )
        return stack

    def maybe_spawn(self, now: float) -> Optional[GlyphStack]:
        """Spawn one stack with probability ``density``."""
        self.last_spawned = 0
        if not self._rng.bernoulli(self.density):
            return None
        x = self._rng.uniform_int(0, self.width - 1)
        self.last_spawned = 1
        return self.spawn(x, now)

    def tick_all(self, now: float) -> int:
        """Tick every due stack, then drop the expired ones.

        Removal happens after the whole pass so no stack loses its final
        frame. Returns the number of stacks ticked.
        """
        ticked = 0
        for stack in self.stacks:
            if stack.is_due(now):
                stack.tick(now, self._rng, mutation_chance=self._mutation_chance)
                ticked += 1
        expired = [stack for stack in self.stacks if stack.is_expired()]
        if expired:
            self.stacks = [stack for stack in self.stacks if not stack.is_expired()]
            logger.debug("Removed %s expired stacks", len(expired))
        self.last_ticked = ticked
        return ticked

    def increase_density(self) -> float:
        self.density = clamp_density(self.density + DENSITY_STEP)
        return self.density

    def decrease_density(self) -> float:
        self.density = clamp_density(self.density - DENSITY_STEP)
        return self.density

    def debug_info(
        self,
        *,
        update_delay_ms: int = 0,
        updates_per_sec: float = 0.0,
        glyphs_per_sec: float = 0.0,
    ) -> DebugInfo:
        delays = [int(stack.update_interval * 1000) for stack in self.stacks]
        return DebugInfo(
            density=self.density,
            update_delay_ms=update_delay_ms,
            updates_per_sec=updates_per_sec,
            glyphs_per_sec=glyphs_per_sec,
            glyphs_per_update=self.last_ticked,
            stacks_per_update=self.last_spawned,
            live_stacks=len(self.stacks),
            min_glyph_delay_ms=min(delays, default=0),
            max_glyph_delay_ms=max(delays, default=0),
        )
