"""Pytest configuration for Digital Rain."""

from __future__ import annotations

import os
from typing import Optional

import pytest

from digital_rain.glyphs import Color


class RecordingSink:
    """Display sink that records every call; optionally fails on demand."""

    def __init__(
        self, *, fail_writes: bool = False, fail_clears: bool = False
    ) -> None:
        self.fail_writes = fail_writes
        self.fail_clears = fail_clears
        self.writes: list[tuple[int, int, Optional[int], Optional[Color]]] = []
        self.clears = 0

    def clear_all(self) -> None:
        if self.fail_clears:
            raise OSError("terminal gone")
        self.clears += 1

    def write_cell(
        self, x: int, y: int, codepoint: Optional[int], color: Optional[Color]
    ) -> None:
        if self.fail_writes:
            raise OSError("terminal gone")
        self.writes.append((x, y, codepoint, color))


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "realtime: test sleeps on the real event loop clock"
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    del config
    if os.environ.get("DIGITAL_RAIN_CI") != "1":
        return
    skip_realtime = pytest.mark.skip(reason="Skipping real-time tests in CI.")
    for item in items:
        if "realtime" in item.keywords:
            item.add_marker(skip_realtime)
