"""Textual-based host for the Digital Rain engine."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

try:
    from textual import events
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.worker import Worker, WorkerState
except Exception as exc:  # pragma: no cover - depends on environment
    raise RuntimeError(
        "Textual is required for the TUI. Install the 'textual' dependency."
    ) from exc

from digital_rain.compositor import Compositor
from digital_rain.config import RainConfig
from digital_rain.field import StackField
from digital_rain.glyphs import RandomSource
from digital_rain.hangwatch import StallWatchdog
from digital_rain.logging_setup import set_console_level, set_run_context
from digital_rain.scheduler import Scheduler
from digital_rain.ui.rain_canvas import RainCanvas, columns_for_width

logger = logging.getLogger(__name__)


class RainApp(App):
    """Full-screen digital rain."""

    CSS = """
    Screen {
        background: black;
    }
    #rain {
        width: 100%;
        height: 100%;
    }
    """
    TITLE = "Digital Rain"
    DEBUG_REFRESH_SECONDS = 0.5

    BINDINGS = [
        Binding("q", "quit_rain", "Quit"),
        Binding("escape", "quit_rain", "Quit"),
        Binding("ctrl+c", "quit_rain", "Quit", priority=True),
        Binding("+", "increase_density", "Density +"),
        Binding("=", "increase_density", "Density +", show=False),
        Binding("-", "decrease_density", "Density -"),
        Binding("d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        *,
        config: Optional[RainConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__()
        self._config = config or RainConfig()
        self._clock = clock
        self._rng = rng or RandomSource(self._config.seed)
        self._show_debug = self._config.show_debug
        self.canvas = RainCanvas(id="rain")
        self.scheduler: Optional[Scheduler] = None
        self._worker: Optional[Worker] = None
        self._watchdog: Optional[StallWatchdog] = None

    def compose(self) -> ComposeResult:
        yield self.canvas

    def on_mount(self) -> None:
        columns = columns_for_width(self.size.width)
        rows = max(1, self.size.height)
        self.canvas.resize_grid(columns, rows)
        self.scheduler = self._build_scheduler(columns, rows)
        self._worker = self.run_worker(
            self.scheduler.run(),
            name="rain-scheduler",
            exclusive=True,
            exit_on_error=False,
        )
        self._watchdog = StallWatchdog(self._heartbeat)
        self._watchdog.start()
        self.set_interval(self.DEBUG_REFRESH_SECONDS, self._refresh_debug)
        set_run_context(seed=self._rng.initial_seed, columns=columns, rows=rows)
        logger.info("Rain started viewport=%sx%s", columns, rows)

    def on_unmount(self) -> None:
        if self._watchdog is not None:
            self._watchdog.stop()
            self._watchdog = None

    def on_resize(self, event: events.Resize) -> None:
        """Move the running engine onto a field and compositor of the new size.

        Stacks outside the new grid are dropped. The fresh compositor starts
        from a wiped screen, so its first frame repaints every glyph.
        """
        scheduler = self.scheduler
        if scheduler is None or scheduler.stopped:
            return
        columns = columns_for_width(event.size.width)
        rows = max(1, event.size.height)
        old = scheduler.field
        if (columns, rows) == (old.width, old.height):
            return
        field = self._build_field(columns, rows, density=old.density)
        for stack in old.stacks:
            if stack.x < columns and stack.min_y < rows:
                stack.viewport_height = rows
                field.stacks.append(stack)
        self.canvas.resize_grid(columns, rows)
        compositor = Compositor(columns, rows, self.canvas)
        compositor.wipe()
        scheduler.field = field
        scheduler.compositor = compositor
        set_run_context(seed=self._rng.initial_seed, columns=columns, rows=rows)
        logger.info(
            "Viewport resized to %sx%s; kept %s of %s stacks",
            columns,
            rows,
            len(field.stacks),
            len(old.stacks),
        )

    def _build_field(self, columns: int, rows: int, *, density: float) -> StackField:
        cfg = self._config
        return StackField(
            columns,
            rows,
            self._rng,
            density=density,
            interval_range=cfg.interval_range,
            length_ratio=cfg.length_ratio,
            mutation_chance=cfg.mutation_chance,
        )

    def _build_scheduler(self, columns: int, rows: int) -> Scheduler:
        cfg = self._config
        field = self._build_field(columns, rows, density=cfg.density)
        compositor = Compositor(columns, rows, self.canvas)
        return Scheduler(
            field,
            compositor,
            tick_interval=cfg.tick_interval_ms / 1000.0,
            refresh_interval=cfg.refresh_interval_ms / 1000.0,
            clock=self._clock,
            on_sink_error=cfg.on_sink_error,
        )

    def _heartbeat(self) -> float:
        if self.scheduler is None or self.scheduler.stopped:
            return self._clock()
        return self.scheduler.last_heartbeat

    def _refresh_debug(self) -> None:
        if not self._show_debug or self.scheduler is None:
            self.canvas.set_overlay([])
            return
        self.canvas.set_overlay(self.scheduler.debug_info().lines())

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker is not self._worker:
            return
        if event.state == WorkerState.ERROR:
            logger.error("Rain scheduler failed: %s", event.worker.error)
            self.exit(1)
        elif event.state in (WorkerState.SUCCESS, WorkerState.CANCELLED):
            self.exit(0)

    # --- Actions ---
    def action_quit_rain(self) -> None:
        logger.info("Exit requested")
        if self.scheduler is None or self._worker is None:
            self.exit(0)
            return
        self.scheduler.stop()

    def action_increase_density(self) -> None:
        if self.scheduler is not None:
            density = self.scheduler.field.increase_density()
            logger.info("Density %.1f", density)

    def action_decrease_density(self) -> None:
        if self.scheduler is not None:
            density = self.scheduler.field.decrease_density()
            logger.info("Density %.1f", density)

    def action_toggle_debug(self) -> None:
        self._show_debug = not self._show_debug
        self._refresh_debug()


# Public entrypoints
def run_tui(config: RainConfig) -> int:
    """Run the TUI and return an exit code."""
    logger.info("TUI start seed=%s density=%.1f", config.seed, config.density)
    set_console_level(logging.WARNING)
    app = RainApp(config=config)
    result = app.run()
    logger.info("TUI exit result=%s", result)
    return int(result or 0)
