"""
Configuration loading tests.

Defaults, environment overrides, invalid values and the singleton.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    AnalyticsConfig,
    AppConfig,
    DuckDBConnectionType,
    H3Config,
    PipelineConfig,
    ServingConfig,
    debug_config,
    get_config,
    reset_config,
)
from config.defaults import parse_bool, parse_float, parse_int
from exceptions import ConfigurationError


class TestDefaults:

    def test_app_defaults(self, clean_env):
        config = AppConfig.from_environment()
        assert config.debug_mode is False
        assert config.environment == "dev"
        assert config.log_level == "INFO"

    def test_h3_defaults(self, clean_env):
        config = H3Config.from_environment()
        assert config.default_resolution == 9
        assert config.density_ring == 1

    def test_pipeline_defaults(self, clean_env):
        config = PipelineConfig.from_environment()
        assert config.data_dir == "data"
        assert config.refresh_days == 60
        assert config.target_density == 1.0
        assert config.bones_per_token == 100_000_000

    def test_serving_defaults(self, clean_env):
        config = ServingConfig.from_environment()
        assert config.max_horizon_days == 4
        assert config.default_row_limit == 5000
        assert config.max_row_limit == 50000
        assert config.debounce_seconds == pytest.approx(0.38)

    def test_analytics_defaults(self, clean_env):
        config = AnalyticsConfig.from_environment()
        assert config.connection_type == DuckDBConnectionType.MEMORY
        assert config.database_path is None
        assert config.memory_limit == "1GB"
        assert config.threads == 4


class TestEnvironmentOverrides:

    def test_h3(self, clean_env):
        clean_env.setenv("H3_DEFAULT_RESOLUTION", "7")
        clean_env.setenv("H3_DENSITY_RING", "2")
        config = H3Config.from_environment()
        assert (config.default_resolution, config.density_ring) == (7, 2)

    def test_pipeline(self, clean_env, tmp_path):
        clean_env.setenv("H3_DATA_DIR", str(tmp_path))
        clean_env.setenv("IOT_REWARDS_PATH", "/srv/rewards.jsonl")
        clean_env.setenv("IOT_REFRESH_DAYS", "14")
        clean_env.setenv("IOT_TARGET_DENSITY", "2.5")
        config = PipelineConfig.from_environment()
        assert config.data_dir == str(tmp_path)
        assert config.source_path == "/srv/rewards.jsonl"
        assert config.refresh_days == 14
        assert config.target_density == 2.5

    def test_serving(self, clean_env):
        clean_env.setenv("SERVING_MAX_HORIZON_DAYS", "3")
        clean_env.setenv("SERVING_DEBOUNCE_SECONDS", "0")
        config = ServingConfig.from_environment()
        assert config.max_horizon_days == 3
        assert config.debounce_seconds == 0.0

    def test_analytics_file_connection(self, clean_env, tmp_path):
        clean_env.setenv("DUCKDB_CONNECTION_TYPE", "file")
        clean_env.setenv("DUCKDB_DATABASE_PATH", str(tmp_path / "grid.duckdb"))
        clean_env.setenv("DUCKDB_THREADS", "8")
        config = AnalyticsConfig.from_environment()
        assert config.connection_type == DuckDBConnectionType.FILE
        assert config.threads == 8

    def test_debug_mode(self, clean_env):
        clean_env.setenv("DEBUG_MODE", "yes")
        assert AppConfig.from_environment().debug_mode is True


class TestInvalidValues:

    def test_non_integer(self, clean_env):
        clean_env.setenv("H3_DEFAULT_RESOLUTION", "nine")
        with pytest.raises(ConfigurationError, match="H3_DEFAULT_RESOLUTION"):
            H3Config.from_environment()

    def test_non_number(self, clean_env):
        clean_env.setenv("IOT_TARGET_DENSITY", "dense")
        with pytest.raises(ConfigurationError, match="IOT_TARGET_DENSITY"):
            PipelineConfig.from_environment()

    def test_out_of_range_resolution(self, clean_env):
        clean_env.setenv("H3_DEFAULT_RESOLUTION", "16")
        with pytest.raises(PydanticValidationError):
            H3Config.from_environment()

    def test_file_connection_needs_path(self):
        with pytest.raises(PydanticValidationError):
            AnalyticsConfig(connection_type=DuckDBConnectionType.FILE)

    def test_target_density_positive(self):
        with pytest.raises(PydanticValidationError):
            PipelineConfig(target_density=0)


@pytest.mark.parametrize("value,expected", [
    ("true", True), ("1", True), ("YES", True), (" on ", True),
    ("false", False), ("0", False), ("no", False), ("", False),
])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_parse_bool_default_and_invalid():
    assert parse_bool(None, default=True) is True
    with pytest.raises(ConfigurationError):
        parse_bool("maybe")


def test_parse_numbers():
    assert parse_int("X", "12") == 12
    assert parse_float("X", "0.5") == 0.5
    with pytest.raises(ConfigurationError, match="X must be an integer"):
        parse_int("X", "1.5")


class TestPaths:

    def test_layout(self):
        config = PipelineConfig(data_dir="/srv/grid")
        assert config.grid_table_path(9) == Path("/srv/grid/features/iot/h3/r9/latest.parquet")
        assert config.forecast_path(7) == Path("/srv/grid/forecasts/iot/h3/r7/latest.parquet")


class TestSingleton:

    def test_get_config_cached(self, clean_env):
        assert get_config() is get_config()

    def test_reset_rereads_environment(self, clean_env):
        clean_env.setenv("H3_DEFAULT_RESOLUTION", "6")
        assert get_config().h3.default_resolution == 6
        clean_env.setenv("H3_DEFAULT_RESOLUTION", "8")
        assert get_config().h3.default_resolution == 6
        reset_config()
        assert get_config().h3.default_resolution == 8

    def test_debug_config(self, clean_env):
        info = debug_config()
        assert set(info) >= {"h3", "pipeline", "serving", "analytics", "environment"}
        assert info["analytics"]["database_path"] == "<memory>"

    def test_debug_config_reports_errors(self, clean_env):
        clean_env.setenv("DUCKDB_THREADS", "many")
        assert "error" in debug_config()
