"""Command-line interface for Digital Rain."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import sys
import threading
from types import TracebackType
from typing import Iterable, Optional, Tuple

from digital_rain.config import RainConfig, load_config, save_config
from digital_rain.field import clamp_density
from digital_rain.hangwatch import dump_threads, enable_faulthandler
from digital_rain.logging_setup import LOG_LEVEL_ENV, init_logging

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="digital-rain", description="Falling katakana in your terminal"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--density",
        type=float,
        default=None,
        help="Spawn probability per simulation tick (0.1-1.0)",
    )
    parser.add_argument(
        "--tick-ms",
        type=int,
        default=None,
        help="Simulation tick interval in milliseconds",
    )
    parser.add_argument(
        "--refresh-ms",
        type=int,
        default=None,
        help="Display refresh interval in milliseconds",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show the debug overlay on start",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help=f"Log level (overrides {LOG_LEVEL_ENV})",
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Save the effective configuration and exit",
    )
    return parser


def apply_overrides(cfg: RainConfig, args: argparse.Namespace) -> RainConfig:
    """Return ``cfg`` with any command-line values applied."""
    if args.seed is not None:
        cfg = replace(cfg, seed=args.seed)
    if args.density is not None:
        cfg = replace(cfg, density=clamp_density(args.density))
    if args.tick_ms is not None:
        cfg = replace(cfg, tick_interval_ms=max(1, args.tick_ms))
    if args.refresh_ms is not None:
        cfg = replace(cfg, refresh_interval_ms=max(1, args.refresh_ms))
    if args.debug:
        cfg = replace(cfg, show_debug=True)
    return cfg


def _run_tui(cfg: RainConfig) -> int:
    try:
        from digital_rain.tui import run_tui
    except (ImportError, RuntimeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return run_tui(cfg)


def _install_excepthooks() -> None:
    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))
        dump_threads("uncaught exception")

    sys.excepthook = excepthook

    def thread_hook(args: threading.ExceptHookArgs) -> None:
        exc_value = args.exc_value or RuntimeError("unknown")
        exc_info: Tuple[
            type[BaseException], BaseException, Optional[TracebackType]
        ] = (
            args.exc_type,
            exc_value,
            args.exc_traceback,
        )
        thread_name = args.thread.name if args.thread else "thread"
        logger.exception("Thread exception in %s", thread_name, exc_info=exc_info)

    threading.excepthook = thread_hook


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    log_path = init_logging(args.log_level)
    enable_faulthandler(log_path)
    _install_excepthooks()
    logger.info("App start")

    cfg = apply_overrides(load_config(), args)
    if args.write_config:
        path = save_config(cfg)
        print(f"Wrote {path}")
        return 0

    exit_code = _run_tui(cfg)
    logger.info("App exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
