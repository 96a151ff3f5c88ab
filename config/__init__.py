# ============================================================================
# CONFIG PACKAGE INIT
# ============================================================================
# PURPOSE: Configuration package exports and singleton accessor
# EXPORTS: All config classes, get_config singleton, reset_config, debug_config
# PYDANTIC_MODELS: AppConfig, H3Config, PipelineConfig, ServingConfig, AnalyticsConfig
# PATTERNS: Singleton, composition, facade
# ENTRY_POINTS: from config import get_config
# ============================================================================

"""
Configuration Package - Domain-Specific Configuration Modules

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── h3_config.py             # Grid resolution, density ring
    ├── pipeline_config.py       # Batch refresh paths and knobs
    ├── serving_config.py        # Query API limits
    ├── analytics_config.py      # DuckDB
    └── defaults.py              # Default values and env parsing helpers

Usage:
    # Singleton pattern (preferred)
    from config import get_config
    config = get_config()
    resolution = config.h3.default_resolution

    # Debug output
    from config import debug_config
    info = debug_config()
"""

from typing import Optional

from .analytics_config import AnalyticsConfig, DuckDBConnectionType
from .h3_config import H3Config
from .pipeline_config import PipelineConfig
from .serving_config import ServingConfig
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """
    Drop the cached singleton so the next get_config() re-reads the environment.

    Used by tests that patch environment variables.
    """
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get configuration for debugging.

    Returns:
        Dictionary with configuration values per domain
    """
    try:
        config = get_config()
        return {
            'h3': config.h3.debug_dict(),
            'pipeline': config.pipeline.debug_dict(),
            'serving': config.serving.debug_dict(),
            'analytics': config.analytics.debug_dict(),

            # Application
            'debug_mode': config.debug_mode,
            'environment': config.environment,
            'log_level': config.log_level,
        }
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'AppConfig',
    'get_config',
    'reset_config',
    'debug_config',
    'H3Config',
    'PipelineConfig',
    'ServingConfig',
    'AnalyticsConfig',
    'DuckDBConnectionType',
]
