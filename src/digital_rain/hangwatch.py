"""Stall watchdog and faulthandler integration."""

from __future__ import annotations

import faulthandler
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

_DUMP_FILE: Optional[TextIO] = None
_LOCK = threading.Lock()


def enable_faulthandler(log_path: Path) -> Path:
    """Route faulthandler output next to the log file; return the dump path."""
    global _DUMP_FILE
    dump_path = log_path.parent / "hangdump.log"
    try:
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(dump_path, "a", encoding="utf-8")
    except OSError:
        logger.warning("Cannot open hang dump file %s", dump_path)
        return dump_path
    with _LOCK:
        _DUMP_FILE = handle
    faulthandler.enable(file=handle, all_threads=True)
    return dump_path


def dump_threads(label: str) -> None:
    """Write a labelled stack dump of every thread."""
    handle = _DUMP_FILE
    if handle is None:
        return
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    with _LOCK:
        try:
            handle.write(f"\n[{stamp}] {label}\n")
            faulthandler.dump_traceback(file=handle, all_threads=True)
            handle.flush()
        except (OSError, ValueError):
            # ValueError: the dump file was closed underneath us.
            logger.warning("Thread dump failed for %r", label, exc_info=True)


class StallWatchdog:
    """Dumps thread stacks when the simulation heartbeat stops advancing."""

    def __init__(
        self,
        get_heartbeat: Callable[[], float],
        *,
        threshold_seconds: float = 5.0,
        repeat_seconds: float = 30.0,
        poll_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._get_heartbeat = get_heartbeat
        self._threshold_seconds = threshold_seconds
        self._repeat_seconds = repeat_seconds
        self._poll_seconds = poll_seconds
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="StallWatchdog", daemon=True
        )
        self._last_dump: Optional[float] = None
        self.dumps = 0

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def check(self) -> bool:
        """Dump once if stalled and not dumped recently; return True on dump."""
        now = self._clock()
        stalled = now - self._get_heartbeat() > self._threshold_seconds
        if not stalled:
            return False
        last = self._last_dump
        if last is not None and now - last < self._repeat_seconds:
            return False
        self._last_dump = now
        self.dumps += 1
        logger.warning("Simulation stalled; dumping threads")
        dump_threads("simulation stalled")
        return True

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.check()
            self._stop_event.wait(self._poll_seconds)
