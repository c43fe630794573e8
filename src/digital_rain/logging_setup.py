"""Logging setup for Digital Rain.

File records carry the run's seed and viewport so a logged session can be
replayed with ``--seed``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
from typing import Optional

LOG_LEVEL_ENV = "DIGITAL_RAIN_LOG_LEVEL"
LOG_FILE_NAME = "rain.log"
FILE_FORMAT = (
    "%(asctime)s %(levelname)s [%(threadName)s] "
    "seed=%(rain_seed)s view=%(rain_viewport)s %(name)s: %(message)s"
)
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class RunContextFilter(logging.Filter):
    """Stamps records with the engine seed and viewport size."""

    def __init__(self) -> None:
        super().__init__()
        self.seed = "-"
        self.viewport = "-"

    def filter(self, record: logging.LogRecord) -> bool:
        setattr(record, "rain_seed", self.seed)
        setattr(record, "rain_viewport", self.viewport)
        return True


_RUN_CONTEXT = RunContextFilter()


def _default_log_dir() -> Path:
    local_appdata = os.getenv("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / "DigitalRain" / "logs"
    return Path.home() / ".digital_rain" / "logs"


def resolve_level(name: Optional[str] = None) -> int:
    """Level from ``name``, else the environment, else INFO."""
    raw = name or os.getenv(LOG_LEVEL_ENV) or "INFO"
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def set_run_context(
    *,
    seed: Optional[int] = None,
    columns: Optional[int] = None,
    rows: Optional[int] = None,
) -> None:
    """Update the seed and viewport written on every file record."""
    if seed is not None:
        _RUN_CONTEXT.seed = str(seed)
    if columns is not None and rows is not None:
        _RUN_CONTEXT.viewport = f"{columns}x{rows}"


def init_logging(level_name: Optional[str] = None) -> Path:
    """Attach the rotating rain log and a stderr handler; return the log path.

    Calling it again only updates levels.
    """
    log_path = _default_log_dir() / LOG_FILE_NAME
    level = resolve_level(level_name)
    root = logging.getLogger()
    root.setLevel(level)

    file_handler = _find_file_handler(root)
    if file_handler is None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
            )
        except OSError:
            logging.basicConfig(level=level, format=CONSOLE_FORMAT)
            logging.getLogger(__name__).warning("Cannot open log file %s", log_path)
            return log_path
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)
    file_handler.addFilter(_RUN_CONTEXT)
    file_handler.setLevel(level)

    if not any(_is_console_handler(h) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console)
    for handler in root.handlers:
        if _is_console_handler(handler):
            handler.setLevel(level)

    logging.getLogger(__name__).info(
        "Logging to %s at %s", log_path, logging.getLevelName(level)
    )
    return log_path


def _find_file_handler(root: logging.Logger) -> Optional[RotatingFileHandler]:
    for handler in root.handlers:
        if isinstance(handler, RotatingFileHandler):
            return handler
    return None


def _is_console_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and not isinstance(
        handler, logging.FileHandler
    )


def set_console_level(level: int) -> None:
    """Adjust the stderr handler level while the TUI owns the terminal."""
    root = logging.getLogger()
    for handler in root.handlers:
        if _is_console_handler(handler):
            handler.setLevel(level)
