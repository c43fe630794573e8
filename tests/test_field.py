"""Tests for the stack field."""

from __future__ import annotations

import pytest

from digital_rain.field import MAX_DENSITY, MIN_DENSITY, StackField
from digital_rain.glyphs import Color, Glyph, RandomSource
from digital_rain.stack import GlyphStack


def _add_stack(field: StackField, *, x: int = 3, length: int = 4) -> GlyphStack:
    stack = GlyphStack(
        x=x,
        length=length,
        update_interval=100.0,
        last_update=0.0,
        viewport_height=field.height,
        glyphs=[Glyph(0x30A0, Color.WHITE)],
    )
    field.stacks.append(stack)
    return stack


def test_maybe_spawn_places_stack_inside_width() -> None:
    field = StackField(10, 20, RandomSource(1), density=1.0)
    for step in range(50):
        stack = field.maybe_spawn(float(step))
        assert stack is not None
        assert 0 <= stack.x < 10
        assert stack.viewport_height == 20
    assert len(field) == 50
    assert field.last_spawned == 1


def test_maybe_spawn_respects_density() -> None:
    field = StackField(10, 20, RandomSource(2), density=0.1)
    spawned = sum(1 for step in range(1000) if field.maybe_spawn(float(step)))
    assert 40 < spawned < 180


def test_tick_all_only_ticks_due_stacks() -> None:
    field = StackField(10, 20, RandomSource(3))
    fast = _add_stack(field)
    slow = _add_stack(field, x=5)
    slow.update_interval = 250.0
    assert field.tick_all(100.0) == 1
    assert len(fast.glyphs) == 2
    assert len(slow.glyphs) == 1
    assert field.last_ticked == 1


def test_expired_stack_removed_in_same_pass() -> None:
    field = StackField(10, 20, RandomSource(4))
    stack = _add_stack(field)
    step = 0
    while True:
        step += 1
        field.tick_all(step * 100.0)
        if stack.min_y > 19:
            break
        assert stack in field.stacks
    assert step == 23
    assert stack.min_y == 20
    assert stack not in field.stacks


def test_removal_waits_for_whole_pass() -> None:
    field = StackField(10, 2, RandomSource(5))
    first = _add_stack(field, length=1)
    second = _add_stack(field, x=1, length=1)
    field.tick_all(100.0)
    field.tick_all(200.0)
    assert first.is_expired() and second.is_expired()
    assert second.max_y == first.max_y == 2
    assert field.stacks == []


@pytest.mark.parametrize("start", [0.0, 5.0])
def test_density_is_clamped(start: float) -> None:
    field = StackField(10, 20, RandomSource(6), density=start)
    assert MIN_DENSITY <= field.density <= MAX_DENSITY


def test_density_steps() -> None:
    field = StackField(10, 20, RandomSource(6), density=0.5)
    assert field.increase_density() == pytest.approx(0.6)
    for _ in range(10):
        field.increase_density()
    assert field.density == MAX_DENSITY
    for _ in range(20):
        field.decrease_density()
    assert field.density == MIN_DENSITY


def test_debug_info_reports_counters() -> None:
    field = StackField(10, 20, RandomSource(7))
    _add_stack(field).update_interval = 0.05
    _add_stack(field, x=2).update_interval = 0.2
    info = field.debug_info(update_delay_ms=30, updates_per_sec=33.0)
    assert info.live_stacks == 2
    assert info.min_glyph_delay_ms == 50
    assert info.max_glyph_delay_ms == 200
    assert info.update_delay_ms == 30
    assert any(line.startswith("density") for line in info.lines())


def test_debug_info_empty_field() -> None:
    info = StackField(10, 20, RandomSource(7)).debug_info()
    assert info.live_stacks == 0
    assert info.min_glyph_delay_ms == 0
