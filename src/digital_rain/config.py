"""Configuration persistence for Digital Rain."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from digital_rain.field import MAX_DENSITY, MIN_DENSITY
from digital_rain.scheduler import SINK_ERROR_POLICIES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RainConfig:
    """Immutable engine configuration loaded from disk."""

    density: float = 0.5
    tick_interval_ms: int = 30
    refresh_interval_ms: int = 33
    min_update_interval_ms: int = 50
    max_update_interval_ms: int = 250
    length_ratio: float = 0.75
    mutation_chance: float = 0.05
    on_sink_error: str = "skip"
    show_debug: bool = False
    seed: Optional[int] = None

    @property
    def interval_range(self) -> tuple[float, float]:
        return (
            self.min_update_interval_ms / 1000.0,
            self.max_update_interval_ms / 1000.0,
        )


def get_config_dir(app_name: str = "digital-rain") -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            root = Path(base)
        else:
            root = Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    elif os.name == "posix":
        if _is_macos():
            return _ensure_dir(
                Path.home() / "Library" / "Application Support" / app_name
            )
        base = os.environ.get("XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
        return _ensure_dir(root / app_name)
    else:
        return _ensure_dir(Path.home() / ".config" / app_name)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def load_config() -> RainConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return RainConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return RainConfig()
    if not isinstance(raw, dict):
        return RainConfig()
    return _config_from_mapping(raw)


def save_config(cfg: RainConfig) -> Path:
    """Persist configuration to disk atomically and return the path."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    temp_path.write_text(json.dumps(asdict(cfg), indent=2), encoding="utf-8")
    os.replace(temp_path, path)
    return path


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False


def _get_bool(raw: dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    return default


def _get_int(
    raw: dict[str, Any],
    key: str,
    default: int,
    *,
    min_value: int | None = None,
) -> int:
    """Fetch an integer value with an optional lower bound."""
    value = raw.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        value = default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _get_float(
    raw: dict[str, Any],
    key: str,
    default: float,
    *,
    min_value: float,
    max_value: float,
) -> float:
    """Fetch a numeric value clamped to [min_value, max_value]."""
    value = raw.get(key, default)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        value = default
    return max(min_value, min(max_value, float(value)))


def _config_from_mapping(raw: dict[str, Any]) -> RainConfig:
    """Normalize raw JSON data into a RainConfig."""
    defaults = RainConfig()
    min_interval = _get_int(
        raw, "min_update_interval_ms", defaults.min_update_interval_ms, min_value=1
    )
    max_interval = _get_int(
        raw, "max_update_interval_ms", defaults.max_update_interval_ms, min_value=1
    )
    if max_interval < min_interval:
        min_interval, max_interval = max_interval, min_interval
    length_ratio = _get_float(
        raw, "length_ratio", defaults.length_ratio, min_value=0.01, max_value=1.0
    )
    on_sink_error = raw.get("on_sink_error", defaults.on_sink_error)
    if on_sink_error not in SINK_ERROR_POLICIES:
        on_sink_error = defaults.on_sink_error
    seed = raw.get("seed")
    if not isinstance(seed, int) or isinstance(seed, bool):
        seed = None
    return RainConfig(
        density=_get_float(
            raw,
            "density",
            defaults.density,
            min_value=MIN_DENSITY,
            max_value=MAX_DENSITY,
        ),
        tick_interval_ms=_get_int(
            raw, "tick_interval_ms", defaults.tick_interval_ms, min_value=1
        ),
        refresh_interval_ms=_get_int(
            raw, "refresh_interval_ms", defaults.refresh_interval_ms, min_value=1
        ),
        min_update_interval_ms=min_interval,
        max_update_interval_ms=max_interval,
        length_ratio=length_ratio,
        mutation_chance=_get_float(
            raw,
            "mutation_chance",
            defaults.mutation_chance,
            min_value=0.0,
            max_value=1.0,
        ),
        on_sink_error=on_sink_error,
        show_debug=_get_bool(raw, "show_debug", defaults.show_debug),
        seed=seed,
    )
