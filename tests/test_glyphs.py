"""Tests for glyph values and the random source."""

from __future__ import annotations

import pytest

from digital_rain.glyphs import (
    GLYPH_MAX,
    GLYPH_MIN,
    Color,
    Glyph,
    RandomSource,
    random_glyph,
)


def test_random_glyph_in_katakana_range_and_white() -> None:
    rng = RandomSource(7)
    glyphs = [random_glyph(rng) for _ in range(500)]
    assert all(GLYPH_MIN <= glyph.value <= GLYPH_MAX for glyph in glyphs)
    assert all(glyph.color is Color.WHITE for glyph in glyphs)
    assert len({glyph.value for glyph in glyphs}) > 50


def test_random_source_is_reseedable() -> None:
    rng = RandomSource(42)
    first = [rng.uniform_int(0, 1000) for _ in range(10)]
    rng.seed(42)
    second = [rng.uniform_int(0, 1000) for _ in range(10)]
    assert first == second


def test_unseeded_source_records_a_replayable_seed() -> None:
    rng = RandomSource()
    replay = RandomSource(rng.initial_seed)
    assert isinstance(rng.initial_seed, int)
    assert [rng.uniform_int(0, 1000) for _ in range(10)] == [
        replay.uniform_int(0, 1000) for _ in range(10)
    ]


def test_uniform_int_is_inclusive() -> None:
    rng = RandomSource(1)
    seen = {rng.uniform_int(1, 3) for _ in range(200)}
    assert seen == {1, 2, 3}


@pytest.mark.parametrize("p, expected", [(0.0, False), (-1.0, False), (1.0, True)])
def test_bernoulli_edges(p: float, expected: bool) -> None:
    rng = RandomSource(3)
    assert all(rng.bernoulli(p) is expected for _ in range(50))


def test_glyph_is_immutable_value() -> None:
    glyph = Glyph(0x30A2, Color.DARK_GREEN)
    assert glyph.char == "ア"
    assert glyph == Glyph(0x30A2, Color.DARK_GREEN)
    with pytest.raises(AttributeError):
        glyph.value = 0x30A3  # type: ignore[misc]
