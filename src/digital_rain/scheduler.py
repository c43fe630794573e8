"""Simulation and refresh triggers driving the engine."""

from __future__ import annotations

import asyncio
from collections import deque
import logging
import time
from typing import Callable, Optional

from digital_rain.compositor import Compositor, DisplaySinkError
from digital_rain.field import DebugInfo, StackField

logger = logging.getLogger(__name__)

SINK_ERROR_POLICIES = ("skip", "abort")


class RateMeter:
    """Events per second over a sliding window of clock readings."""

    def __init__(self, window: float = 1.0) -> None:
        self._window = window
        self._samples: deque[tuple[float, int]] = deque()

    def add(self, now: float, count: int = 1) -> None:
        self._samples.append((now, count))
        self._trim(now)

    def rate(self, now: float) -> float:
        self._trim(now)
        if not self._samples:
            return 0.0
        return sum(count for _, count in self._samples) / self._window

    def _trim(self, now: float) -> None:
        while self._samples and now - self._samples[0][0] > self._window:
            self._samples.popleft()


class Scheduler:
    """Runs the simulation tick and the display refresh until stopped.

    Both triggers read the same clock. Each trigger is due one interval
    after it last fired; a late trigger fires once, without catching up.
    """

    def __init__(
        self,
        field: StackField,
        compositor: Compositor,
        *,
        tick_interval: float = 0.03,
        refresh_interval: float = 0.033,
        clock: Callable[[], float] = time.monotonic,
        on_sink_error: str = "skip",
    ) -> None:
        if on_sink_error not in SINK_ERROR_POLICIES:
            raise ValueError(f"Unknown sink error policy: {on_sink_error}")
        self.field = field
        self.compositor = compositor
        self.tick_interval = max(0.001, tick_interval)
        self.refresh_interval = max(0.001, refresh_interval)
        self._clock = clock
        self._on_sink_error = on_sink_error
        self._stop_event = asyncio.Event()
        self._next_tick: Optional[float] = None
        self._next_refresh: Optional[float] = None
        self._updates = RateMeter()
        self._glyphs = RateMeter()
        self.last_heartbeat = clock()
        self.sink_errors = 0

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request cancellation; honored between triggers."""
        self._stop_event.set()

    def run_tick(self, now: float) -> int:
        self.field.maybe_spawn(now)
        ticked = self.field.tick_all(now)
        self._updates.add(now)
        self._glyphs.add(now, ticked)
        self.last_heartbeat = now
        return ticked

    def run_refresh(self) -> None:
        try:
            self.compositor.flush(self.field.stacks)
        except DisplaySinkError:
            self.sink_errors += 1
            if self._on_sink_error == "abort":
                raise
            logger.exception("Display refresh failed; skipping frame")

    def step(self, now: float) -> float:
        """Fire whichever triggers are due at ``now``; return the next due time."""
        if self._next_tick is None or self._next_refresh is None:
            self._next_tick = now
            self._next_refresh = now
        if now >= self._next_tick:
            self.run_tick(now)
            self._next_tick = now + self.tick_interval
        if now >= self._next_refresh:
            self.run_refresh()
            self._next_refresh = now + self.refresh_interval
        return min(self._next_tick, self._next_refresh)

    async def run(self) -> None:
        """Drive both triggers until ``stop`` is called, then wipe the display."""
        logger.info(
            "Scheduler start tick=%.3fs refresh=%.3fs size=%sx%s",
            self.tick_interval,
            self.refresh_interval,
            self.compositor.width,
            self.compositor.height,
        )
        try:
            while not self._stop_event.is_set():
                due = self.step(self._clock())
                delay = max(0.0, due - self._clock())
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
        except BaseException:
            self._stop_event.set()
            try:
                self.compositor.wipe()
            except DisplaySinkError:
                logger.exception("Display wipe failed while stopping")
            raise
        self._stop_event.set()
        self.compositor.wipe()
        logger.info("Scheduler stopped after %s frames", self.compositor.frames)

    def debug_info(self) -> DebugInfo:
        now = self._clock()
        return self.field.debug_info(
            update_delay_ms=int(self.tick_interval * 1000),
            updates_per_sec=self._updates.rate(now),
            glyphs_per_sec=self._glyphs.rate(now),
        )
