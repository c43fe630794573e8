"""Glyph values, colors and the seedable random source."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import random
from typing import Optional

GLYPH_MIN = 0x30A0
GLYPH_MAX = 0x30FF


class Color(str, Enum):
    """Color tag carried by every glyph."""

    WHITE = "white"
    LIGHT_GREEN = "light_green"
    DARK_GREEN = "dark_green"


@dataclass(frozen=True)
class Glyph:
    """One cell's logical content: a katakana codepoint and its color."""

    value: int
    color: Color = Color.WHITE

    @property
    def char(self) -> str:
        return chr(self.value)


class RandomSource:
    """Thin wrapper over ``random.Random`` exposing the draws the engine uses.

    Without an explicit seed one is drawn, so ``initial_seed`` can always
    replay the run.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = random.randrange(2**32)
        self.initial_seed = seed
        self._rng = random.Random(seed)

    def seed(self, value: Optional[int]) -> None:
        self._rng.seed(value)

    def uniform_int(self, low: int, high: int) -> int:
        """Return an integer in the inclusive range [low, high]."""
        return self._rng.randint(low, high)

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def bernoulli(self, p: float) -> bool:
        if p <= 0.0:
            return False
        if p >= 1.0:
            return True
        return self._rng.random() < p


def random_codepoint(rng: RandomSource) -> int:
    return rng.uniform_int(GLYPH_MIN, GLYPH_MAX)


def random_glyph(rng: RandomSource) -> Glyph:
    """Return a fresh white glyph with a uniformly drawn codepoint."""
    return Glyph(value=random_codepoint(rng), color=Color.WHITE)
