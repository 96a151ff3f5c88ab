"""
DuckDB Repository - Analytical Query Engine.

Centralized DuckDB access for reading persisted grid tables and forecast
files straight from Parquet.

Key Features:
    - One cursor per query (cursors are independent connections to the
      same database, so concurrent API requests never share one)
    - In-memory or file-backed database
    - Memory limit and thread count from AnalyticsConfig
    - Parameterized SQL only; file paths are quoted with parquet_source()

Exports:
    DuckDBRepository: Analytical database repository
    IDuckDBRepository: Abstract interface for dependency injection
    parquet_source: Quote a local Parquet path as a read_parquet() table function
    create_duckdb_repository: Build a repository from AnalyticsConfig
"""

# ============================================================================
# IMPORTS - Top of file for fail-fast behavior
# ============================================================================

import threading
import traceback
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

import duckdb
import pandas as pd

from config import AnalyticsConfig, DuckDBConnectionType
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "DuckDBRepository")


def parquet_source(path: Union[str, Path]) -> str:
    """
    Render a local Parquet path as a read_parquet() call.

    Table functions cannot take a bound parameter for the file name, so
    the path is embedded as a single-quoted SQL literal with quotes doubled.
    """
    escaped = str(path).replace("'", "''")
    return f"read_parquet('{escaped}')"


# ============================================================================
# DUCKDB REPOSITORY INTERFACE
# ============================================================================

class IDuckDBRepository(ABC):
    """
    Interface for DuckDB analytical operations.

    Enables dependency injection and testing/mocking of DuckDB operations.
    """

    @abstractmethod
    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the base DuckDB connection"""
        pass

    @abstractmethod
    def query(self, sql: str, parameters: Optional[List[Any]] = None) -> List[tuple]:
        """Execute SQL query and return all rows"""
        pass

    @abstractmethod
    def query_to_df(self, sql: str, parameters: Optional[List[Any]] = None) -> pd.DataFrame:
        """Execute SQL query and return pandas DataFrame"""
        pass

    @abstractmethod
    def execute(self, sql: str, parameters: Optional[List[Any]] = None) -> None:
        """Execute SQL statement without returning results"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close DuckDB connection and cleanup resources"""
        pass

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Check DuckDB health"""
        pass


# ============================================================================
# DUCKDB REPOSITORY IMPLEMENTATION
# ============================================================================

class DuckDBRepository(IDuckDBRepository):
    """
    DuckDB repository for analytical reads.

    Connection Types:
    - memory: In-memory database (default, fast, ephemeral)
    - file: File-based database

    Thread Safety:
    - A DuckDBPyConnection must not be used from two threads at once
    - Every query/execute call opens its own cursor and closes it afterwards
    - The base connection is created once under a lock
    """

    def __init__(
        self,
        connection_type: str = "memory",
        database_path: Optional[str] = None,
        memory_limit: Optional[str] = None,
        threads: Optional[int] = None
    ):
        """
        Initialize DuckDB repository.

        Args:
            connection_type: "memory" or "file"
            database_path: Path to database file (for file connections)
            memory_limit: DuckDB memory_limit setting (e.g. "1GB")
            threads: DuckDB worker threads
        """
        self.connection_type = connection_type
        self.database_path = database_path
        self.memory_limit = memory_limit
        self.threads = threads
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()

        logger.info(f"DuckDBRepository initialized - type: {connection_type}")

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create the base DuckDB connection.

        STEP 1: Create connection (memory or file) with settings applied

        Returns:
            DuckDB connection (use cursor() per query, not this directly)
        """
        with self._lock:
            if self._conn is None:
                try:
                    logger.info("🔄 STEP 1: Creating DuckDB connection...")
                    settings: Dict[str, Any] = {}
                    if self.memory_limit:
                        settings["memory_limit"] = self.memory_limit
                    if self.threads:
                        settings["threads"] = self.threads

                    if self.connection_type == DuckDBConnectionType.FILE.value:
                        db_path = self.database_path or "duckdb.db"
                        self._conn = duckdb.connect(db_path, config=settings)
                        logger.info(f"✅ STEP 1: Persistent DuckDB connection created - {db_path}")
                    else:
                        self._conn = duckdb.connect(":memory:", config=settings)
                        logger.info("✅ STEP 1: In-memory DuckDB connection created")
                except Exception as e:
                    logger.error(f"❌ STEP 1 FAILED: {e}\n{traceback.format_exc()}")
                    raise

            return self._conn

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """Open a fresh cursor on the base connection."""
        return self.get_connection().cursor()

    def query(self, sql: str, parameters: Optional[List[Any]] = None) -> List[tuple]:
        """
        Execute SQL query with optional parameters.

        Args:
            sql: SQL query string
            parameters: Optional list of parameter values for ? placeholders

        Returns:
            All result rows

        Example:
            rows = repo.query("SELECT max(date) FROM read_parquet('x.parquet')")
        """
        cur = self.cursor()
        try:
            return cur.execute(sql, parameters or []).fetchall()
        except Exception as e:
            logger.error(f"Query failed: {e}\nSQL: {sql}\n{traceback.format_exc()}")
            raise
        finally:
            cur.close()

    def query_to_df(self, sql: str, parameters: Optional[List[Any]] = None) -> pd.DataFrame:
        """
        Execute SQL query and return pandas DataFrame.

        Args:
            sql: SQL query string
            parameters: Optional list of parameter values

        Returns:
            pandas DataFrame with query results
        """
        cur = self.cursor()
        try:
            return cur.execute(sql, parameters or []).df()
        except Exception as e:
            logger.error(f"Query failed: {e}\nSQL: {sql}\n{traceback.format_exc()}")
            raise
        finally:
            cur.close()

    def execute(self, sql: str, parameters: Optional[List[Any]] = None) -> None:
        """
        Execute SQL statement without returning results.

        Args:
            sql: SQL statement
            parameters: Optional list of parameter values
        """
        cur = self.cursor()
        try:
            cur.execute(sql, parameters or [])
        except Exception as e:
            logger.error(f"Execute failed: {e}\nSQL: {sql}\n{traceback.format_exc()}")
            raise
        finally:
            cur.close()

    def close(self) -> None:
        """
        Close DuckDB connection and cleanup resources.

        Next get_connection() call will create a new connection.
        """
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                    logger.info("DuckDB connection closed")
                finally:
                    self._conn = None

    def health_check(self) -> Dict[str, Any]:
        """
        Check DuckDB health.

        Returns:
            Dict with health status and connection info
        """
        try:
            version = self.query("SELECT version()")[0][0]
            return {
                "status": "healthy",
                "connection_type": self.connection_type,
                "version": version,
                "connection_active": self._conn is not None,
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}\n{traceback.format_exc()}")
            return {
                "status": "unhealthy",
                "error": str(e),
            }


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_duckdb_repository(config: Optional[AnalyticsConfig] = None) -> DuckDBRepository:
    """
    Build a DuckDB repository from analytics configuration.

    Args:
        config: AnalyticsConfig (defaults to get_config().analytics)

    Returns:
        New DuckDBRepository owned by the caller
    """
    if config is None:
        from config import get_config
        config = get_config().analytics

    return DuckDBRepository(
        connection_type=config.connection_type.value,
        database_path=config.database_path,
        memory_limit=config.memory_limit,
        threads=config.threads,
    )
