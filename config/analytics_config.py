"""
Analytics configuration - DuckDB settings.

DuckDB reads the persisted grid tables and forecast files straight from
Parquet for every query:
- Date-range and hex-list predicates pushed into ``read_parquet``
- One cursor per query so concurrent API requests never share one

Configuration Fields are deliberately small: an in-memory connection with
a memory limit and a thread count.
"""

import os
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import AnalyticsDefaults, parse_int


class DuckDBConnectionType(str, Enum):
    """DuckDB connection types."""
    MEMORY = "memory"
    FILE = "file"


class AnalyticsConfig(BaseModel):
    """
    Analytics configuration for DuckDB.

    Configuration Fields:
    ---------------------
    connection_type: Memory or file-based connection
    database_path: File path for file-based DuckDB databases
    memory_limit: Max memory for DuckDB operations (e.g., "1GB", "4GB")
    threads: Number of threads for parallel query execution
    """

    connection_type: DuckDBConnectionType = Field(
        default=DuckDBConnectionType.MEMORY,
        description="DuckDB connection type: memory (fast, ephemeral) or file (persistent)"
    )

    database_path: Optional[str] = Field(
        default=None,
        description="File path for DuckDB database (only used if connection_type='file')"
    )

    memory_limit: str = Field(
        default=AnalyticsDefaults.MEMORY_LIMIT,
        description="Max memory for DuckDB operations (e.g., '1GB', '4GB')"
    )

    threads: int = Field(
        default=AnalyticsDefaults.THREADS,
        ge=1,
        le=16,
        description="Number of threads for parallel query execution (1-16)"
    )

    def model_post_init(self, __context):
        """Validate configuration after initialization."""
        if self.connection_type == DuckDBConnectionType.FILE and not self.database_path:
            raise ValueError("database_path required when connection_type='file'")

    @classmethod
    def from_environment(cls) -> "AnalyticsConfig":
        """
        Load analytics configuration from environment variables.

        Environment Variables:
        ---------------------
        DUCKDB_CONNECTION_TYPE: "memory" or "file" (default: "memory")
        DUCKDB_DATABASE_PATH: Path to DuckDB file (default: None)
        DUCKDB_MEMORY_LIMIT: Memory limit string (default: "1GB")
        DUCKDB_THREADS: Number of threads (default: 4)

        Returns:
            AnalyticsConfig: Configured analytics settings
        """
        return cls(
            connection_type=DuckDBConnectionType(
                os.environ.get("DUCKDB_CONNECTION_TYPE", AnalyticsDefaults.CONNECTION_TYPE)
            ),
            database_path=os.environ.get("DUCKDB_DATABASE_PATH"),
            memory_limit=os.environ.get("DUCKDB_MEMORY_LIMIT", AnalyticsDefaults.MEMORY_LIMIT),
            threads=parse_int(
                "DUCKDB_THREADS",
                os.environ.get("DUCKDB_THREADS", str(AnalyticsDefaults.THREADS))
            )
        )

    def debug_dict(self) -> dict:
        """
        Return debug-friendly configuration dictionary.

        Returns:
            dict: Configuration with all fields visible
        """
        return {
            "connection_type": self.connection_type.value,
            "database_path": self.database_path if self.database_path else "<memory>",
            "memory_limit": self.memory_limit,
            "threads": self.threads
        }


# Export
__all__ = ["AnalyticsConfig", "DuckDBConnectionType"]
