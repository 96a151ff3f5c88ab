"""
Configuration Defaults - Single source of truth for all default values.

Every default here is safe for a local deployment: the pipeline reads and
writes under a relative ``data`` directory and the API serves whatever grid
tables exist there.

Organization:
    - H3Defaults: grid resolution and neighborhood ring
    - PipelineDefaults: batch refresh inputs/outputs and reward units
    - ServingDefaults: query API limits and debounce delay
    - AnalyticsDefaults: DuckDB tuning
    - AppDefaults: debug mode, environment, log level

Usage:
    from config.defaults import H3Defaults, parse_bool

    # In Pydantic Field definitions:
    default_resolution: int = Field(default=H3Defaults.DEFAULT_RESOLUTION, ...)
"""

from typing import Optional

from exceptions import ConfigurationError


# =============================================================================
# ENVIRONMENT PARSING HELPERS
# =============================================================================

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """
    Parse a boolean environment value.

    Accepts true/false, 1/0, yes/no, on/off (case-insensitive).
    None returns ``default``.

    Raises:
        ConfigurationError: Unrecognized value
    """
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value: {value!r}")


def parse_int(name: str, value: str) -> int:
    """Parse an integer environment value, naming the variable on failure."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def parse_float(name: str, value: str) -> float:
    """Parse a float environment value, naming the variable on failure."""
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


# =============================================================================
# H3 DEFAULTS (Spatial indexing)
# =============================================================================

class H3Defaults:
    """
    H3 hexagonal grid defaults.

    Resolution 9 cells are roughly 0.1 km², about one neighborhood block,
    which is the scale hotspot placement decisions are made at.
    """

    DEFAULT_RESOLUTION = 9
    DENSITY_RING = 1
    MIN_RESOLUTION = 0
    MAX_RESOLUTION = 15


# =============================================================================
# PIPELINE DEFAULTS (Batch grid refresh)
# =============================================================================

class PipelineDefaults:
    """
    Batch refresh defaults.

    Output layout: {DATA_DIR}/features/iot/h3/r{res}/latest.parquet
    Forecasts:     {DATA_DIR}/forecasts/iot/h3/r{res}/latest.parquet
    """

    DATA_DIR = "data"
    SOURCE_PATH = "data/raw/iot_rewards.jsonl"
    HOTSPOTS_PATH = "data/raw/hotspots.json"
    REFRESH_DAYS = 60
    TARGET_DENSITY = 1.0

    # 1 token = 100,000,000 bones
    BONES_PER_TOKEN = 100_000_000

    # Individual skip/default warnings before switching to a summary line
    MAX_ISSUE_WARNINGS = 20


# =============================================================================
# SERVING DEFAULTS (Query API)
# =============================================================================

class ServingDefaults:
    """
    Query API defaults.
    """

    MAX_HORIZON_DAYS = 4
    DEFAULT_ROW_LIMIT = 5000
    MAX_ROW_LIMIT = 50000
    DEBOUNCE_SECONDS = 0.38


# =============================================================================
# ANALYTICS DEFAULTS (DuckDB)
# =============================================================================

class AnalyticsDefaults:
    """
    DuckDB defaults.

    Grid tables are read straight from Parquet, so an in-memory
    connection is all the serving layer needs.
    """

    CONNECTION_TYPE = "memory"
    MEMORY_LIMIT = "1GB"
    THREADS = 4


# =============================================================================
# APP DEFAULTS
# =============================================================================

class AppDefaults:
    """
    Application-wide defaults.

    Controls debug mode, environment label and logging.
    """

    DEBUG_MODE = False
    ENVIRONMENT = "dev"
    LOG_LEVEL = "INFO"


__all__ = [
    "parse_bool",
    "parse_int",
    "parse_float",
    "H3Defaults",
    "PipelineDefaults",
    "ServingDefaults",
    "AnalyticsDefaults",
    "AppDefaults",
]
