"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without a data directory or any external service.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'core', 'config', 'services', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables to prevent import surprises.

    Configuration is read from the environment on first use; these keep it
    pointed at an in-memory DuckDB and a local data directory.
    """
    defaults = {
        "ENVIRONMENT": "dev",
        "DUCKDB_CONNECTION_TYPE": "memory",
        "DUCKDB_THREADS": "2",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts with the configuration singleton unset."""
    from config import reset_config
    reset_config()
    yield
    reset_config()


@pytest.fixture
def app_config(tmp_path):
    """AppConfig whose data directory is a per-test temporary directory."""
    from config import AppConfig, PipelineConfig

    return AppConfig(
        pipeline=PipelineConfig(
            data_dir=str(tmp_path / "data"),
            source_path=str(tmp_path / "raw" / "iot_rewards.jsonl"),
            hotspots_path=str(tmp_path / "raw" / "hotspots.json"),
        )
    )


@pytest.fixture
def duckdb_repo():
    """In-memory DuckDB repository, closed after the test."""
    from infrastructure.duckdb import DuckDBRepository

    repo = DuckDBRepository(connection_type="memory", threads=2)
    yield repo
    repo.close()
