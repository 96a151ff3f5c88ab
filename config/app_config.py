"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - H3Config (grid resolution, density ring)
    - PipelineConfig (batch refresh paths and knobs)
    - ServingConfig (query API limits)
    - AnalyticsConfig (DuckDB)

Exports:
    AppConfig: Main configuration class

Dependencies:
    pydantic: BaseModel for configuration validation
    config.defaults: Default value constants

Pattern:
    Composition over inheritance - domain configs are composed, not inherited.
"""

import os
from pydantic import BaseModel, Field

from .analytics_config import AnalyticsConfig
from .h3_config import H3Config
from .pipeline_config import PipelineConfig
from .serving_config import ServingConfig
from .defaults import AppDefaults, parse_bool


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.

    Each domain config can be built on its own (tests construct them
    directly); ``from_environment`` loads everything from env vars.
    """

    # ========================================================================
    # Core Application Settings
    # ========================================================================

    debug_mode: bool = Field(
        default=AppDefaults.DEBUG_MODE,
        description=(
            "Enable verbose diagnostics (memory checkpoints at pipeline stages). "
            "Set DEBUG_MODE=true in environment to enable."
        )
    )

    environment: str = Field(
        default=AppDefaults.ENVIRONMENT,
        description="Environment label (dev, staging, prod) echoed in logs."
    )

    log_level: str = Field(
        default=AppDefaults.LOG_LEVEL,
        description="Root logging level."
    )

    # ========================================================================
    # Domain Configurations
    # ========================================================================

    h3: H3Config = Field(
        default_factory=H3Config,
        description="H3 grid configuration"
    )

    pipeline: PipelineConfig = Field(
        default_factory=PipelineConfig,
        description="Batch grid refresh configuration"
    )

    serving: ServingConfig = Field(
        default_factory=ServingConfig,
        description="Query API configuration"
    )

    analytics: AnalyticsConfig = Field(
        default_factory=AnalyticsConfig,
        description="DuckDB configuration"
    )

    @classmethod
    def from_environment(cls):
        """Load all configs from environment."""
        return cls(
            debug_mode=parse_bool(os.environ.get("DEBUG_MODE"), AppDefaults.DEBUG_MODE),
            environment=os.environ.get("ENVIRONMENT", AppDefaults.ENVIRONMENT),
            log_level=os.environ.get("LOG_LEVEL", AppDefaults.LOG_LEVEL),

            h3=H3Config.from_environment(),
            pipeline=PipelineConfig.from_environment(),
            serving=ServingConfig.from_environment(),
            analytics=AnalyticsConfig.from_environment(),
        )


__all__ = ["AppConfig"]
