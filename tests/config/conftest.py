"""
Config test fixtures: clean environment via monkeypatch.
"""

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "H3_DEFAULT_RESOLUTION", "H3_DENSITY_RING", "H3_DATA_DIR",
        "IOT_REWARDS_PATH", "IOT_HOTSPOTS_PATH", "IOT_REFRESH_DAYS", "IOT_TARGET_DENSITY",
        "SERVING_MAX_HORIZON_DAYS", "SERVING_DEFAULT_ROW_LIMIT",
        "SERVING_MAX_ROW_LIMIT", "SERVING_DEBOUNCE_SECONDS",
        "DUCKDB_CONNECTION_TYPE", "DUCKDB_DATABASE_PATH",
        "DUCKDB_MEMORY_LIMIT", "DUCKDB_THREADS",
        "DEBUG_MODE", "ENVIRONMENT", "LOG_LEVEL",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
