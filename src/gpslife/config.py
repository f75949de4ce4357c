"""
GPSlife configuration loader

This module centralizes *all* configuration handling for GPSlife: the live
tracker settings, the timeline thresholds and the export location.

Precedence (highest to lowest) for any given value:
1) Explicit arguments (CLI flags, update_settings() calls)
2) Environment variables (GPSLIFE_*)
3) User config: ~/.config/gpslife/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults

This module uses Python's built-in tomllib on Python 3.11+, or `tomli`.

Sections understood:

    [tracker]
    update_interval = 10000     # ms, hint for the location provider
    high_accuracy = true
    max_age = 30000             # ms
    timeout = 60000             # ms
    minimum_distance = 5.0      # m, stationary-noise threshold
    max_accuracy = 100.0        # m, samples less accurate than this are dropped

    [timeline]
    cluster_distance_m = 50.0
    cluster_time_gap_ms = 600000
    place_min_dwell_ms = 600000
    place_match_radius_m = 100.0
    movement_speed_threshold_kmh = 1.0
    movement_min_duration_ms = 60000
    visit_min_duration_ms = 300000
    group_gap_ms = 7200000

    [paths]
    export_root = "~/GPS/_exports"
"""

from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gpslife.analyze.timeline import TimelineParams
from gpslife.errors import ConfigError


# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    - Missing file -> empty dict (missing config files are normal).
    - Invalid TOML -> ConfigError naming the file.
    """
    if not path.is_file():
        return {}

    try:
        return tomllib.loads(path.read_text(encoding="utf-8")) or {}
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _as_path(v: Any) -> Optional[Path]:
    """
    Coerce a config value into a pathlib.Path if possible.

    Returns None if value cannot be interpreted as a path.
    """
    if v is None:
        return None
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str):
        return Path(v).expanduser()
    return None


def _as_bool(key: str, v: Any) -> bool:
    """
    Coerce loosely-typed config values into booleans, so TOML values and
    environment strings behave the same.

    Raises ConfigError for strings that are not a recognized yes/no word.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    raise ConfigError(f"Invalid boolean for {key!r}: {v!r}")


def _as_int(key: str, v: Any) -> int:
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            pass
    f = float(v)
    if not f.is_integer():
        raise ConfigError(f"Invalid integer for {key!r}: {v!r}")
    return int(f)


def _coerce(key: str, v: Any, like: Any) -> Any:
    """
    Coerce `v` to the type of the default value `like`.

    Raises ConfigError for values that cannot be interpreted. Integer
    settings accept integral floats ("30000.0") but not fractional ones.
    """
    if isinstance(like, bool):
        return _as_bool(key, v)
    try:
        if isinstance(like, int):
            return _as_int(key, v)
        if isinstance(like, float):
            return float(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key!r}: {v!r}") from e
    return v


def _env_path(var: str) -> Optional[Path]:
    val = os.environ.get(var)
    return Path(val).expanduser() if val else None


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TrackerSettings:
    """
    Settings of the live session tracker.

    update_interval, high_accuracy, max_age and timeout are passed through to
    the location provider; the tracker itself only enforces minimum_distance
    and max_accuracy.
    """

    update_interval: int = 10_000
    high_accuracy: bool = True
    max_age: int = 30_000
    timeout: int = 60_000
    minimum_distance: float = 5.0
    max_accuracy: float = 100.0

    def merged(self, **partial: Any) -> "TrackerSettings":
        """
        Return a copy with `partial` applied.

        Raises ConfigError for unknown keys or uncoercible values.
        """
        return _merge_dataclass(self, partial, section="tracker")


@dataclass(frozen=True)
class GPSlifePaths:
    export_root: Path


@dataclass(frozen=True)
class GPSlifeConfig:
    """
    Fully merged GPSlife configuration.

    Attributes:
    - tracker: live tracker settings
    - timeline: batch timeline thresholds
    - paths: resolved filesystem layout
    - source: provenance map showing where each value came from
    """

    tracker: TrackerSettings
    timeline: TimelineParams
    paths: GPSlifePaths
    source: dict[str, str]


def _merge_dataclass(obj: Any, partial: dict[str, Any], *, section: str) -> Any:
    names = {f.name for f in dataclasses.fields(obj)}
    unknown = sorted(set(partial) - names)
    if unknown:
        raise ConfigError(f"Unknown {section} setting(s): {', '.join(unknown)}")
    values = {
        k: _coerce(f"{section}.{k}", v, getattr(obj, k)) for k, v in partial.items()
    }
    return dataclasses.replace(obj, **values)


# ---------------------------------------------------------------------------
# Repo discovery + defaults
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the GPSlife repo root, marked by a
    `config/` directory.
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


def default_export_root() -> Path:
    return Path.home() / "GPS" / "_exports"


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    block = cfg.get(name, {}) or {}
    if not isinstance(block, dict):
        raise ConfigError(f"[{name}] must be a table")
    return block


# Environment variables -> (section, key)
ENV_MAP = {
    "GPSLIFE_UPDATE_INTERVAL": ("tracker", "update_interval"),
    "GPSLIFE_HIGH_ACCURACY": ("tracker", "high_accuracy"),
    "GPSLIFE_MAX_AGE": ("tracker", "max_age"),
    "GPSLIFE_TIMEOUT": ("tracker", "timeout"),
    "GPSLIFE_MINIMUM_DISTANCE": ("tracker", "minimum_distance"),
    "GPSLIFE_MAX_ACCURACY": ("tracker", "max_accuracy"),
}


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> GPSlifeConfig:
    """
    Load, merge, and normalize all GPSlife configuration.

    This function is the single authoritative entry point for configuration.
    """

    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "gpslife" / "config.toml"

    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    tracker = TrackerSettings()
    timeline = TimelineParams()
    export_root = default_export_root()

    src: dict[str, str] = {}
    for f in dataclasses.fields(TrackerSettings):
        src[f"tracker.{f.name}"] = "default"
    for f in dataclasses.fields(TimelineParams):
        src[f"timeline.{f.name}"] = "default"
    src["paths.export_root"] = "default"

    # ------------------------------------------------------------------
    # Repo, then user (user overrides repo)
    # ------------------------------------------------------------------
    for cfg, label, path in (
        (repo_cfg, "repo", repo_config_path),
        (user_cfg, "user", user_config_path),
    ):
        tracker_block = _section(cfg, "tracker")
        if tracker_block:
            tracker = _merge_dataclass(tracker, tracker_block, section="tracker")
            for k in tracker_block:
                src[f"tracker.{k}"] = f"{label}:{path}"

        timeline_block = _section(cfg, "timeline")
        if timeline_block:
            timeline = _merge_dataclass(timeline, timeline_block, section="timeline")
            for k in timeline_block:
                src[f"timeline.{k}"] = f"{label}:{path}"

        v = _as_path(_section(cfg, "paths").get("export_root"))
        if v is not None:
            export_root = v
            src["paths.export_root"] = f"{label}:{path}"

    # ------------------------------------------------------------------
    # Environment variable overrides (highest non-argument precedence)
    # ------------------------------------------------------------------
    env_tracker: dict[str, Any] = {}
    for env, (_, key) in ENV_MAP.items():
        val = os.environ.get(env)
        if val is None or val == "":
            continue
        env_tracker[key] = val
        src[f"tracker.{key}"] = f"env:{env}"
    if env_tracker:
        tracker = _merge_dataclass(tracker, env_tracker, section="tracker")

    v = _env_path("GPSLIFE_EXPORT_ROOT")
    if v is not None:
        export_root = v
        src["paths.export_root"] = "env:GPSLIFE_EXPORT_ROOT"

    return GPSlifeConfig(
        tracker=tracker,
        timeline=timeline,
        paths=GPSlifePaths(export_root=export_root.expanduser()),
        source=src,
    )
