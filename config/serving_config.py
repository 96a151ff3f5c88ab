"""
Serving configuration - query API limits.

Forecast horizons are capped at four days because the upstream model only
publishes four days ahead. Row limits guard the observed-mode response size
when no selection narrows the table.
"""

import os
from pydantic import BaseModel, Field

from .defaults import ServingDefaults, parse_int, parse_float


class ServingConfig(BaseModel):
    """
    Query API configuration.

    Configuration Fields:
    ---------------------
    max_horizon_days: Longest forecast horizon accepted (requests are clamped)
    default_row_limit: Observed rows returned when the caller gives no limit
    max_row_limit: Hard cap on any caller-supplied limit
    debounce_seconds: Quiet period before an interactive query runs
    """

    max_horizon_days: int = Field(
        default=ServingDefaults.MAX_HORIZON_DAYS,
        ge=1,
        description="Maximum forecast horizon in days."
    )

    default_row_limit: int = Field(
        default=ServingDefaults.DEFAULT_ROW_LIMIT,
        ge=1,
        description="Default observed row limit."
    )

    max_row_limit: int = Field(
        default=ServingDefaults.MAX_ROW_LIMIT,
        ge=1,
        description="Upper bound on caller-supplied row limits."
    )

    debounce_seconds: float = Field(
        default=ServingDefaults.DEBOUNCE_SECONDS,
        ge=0,
        description="Debounce delay for interactive query submission."
    )

    @classmethod
    def from_environment(cls) -> "ServingConfig":
        """
        Load serving configuration from environment variables.

        Environment Variables:
        ---------------------
        SERVING_MAX_HORIZON_DAYS (default: 4)
        SERVING_DEFAULT_ROW_LIMIT (default: 5000)
        SERVING_MAX_ROW_LIMIT (default: 50000)
        SERVING_DEBOUNCE_SECONDS (default: 0.38)
        """
        return cls(
            max_horizon_days=parse_int(
                "SERVING_MAX_HORIZON_DAYS",
                os.environ.get("SERVING_MAX_HORIZON_DAYS", str(ServingDefaults.MAX_HORIZON_DAYS))
            ),
            default_row_limit=parse_int(
                "SERVING_DEFAULT_ROW_LIMIT",
                os.environ.get("SERVING_DEFAULT_ROW_LIMIT", str(ServingDefaults.DEFAULT_ROW_LIMIT))
            ),
            max_row_limit=parse_int(
                "SERVING_MAX_ROW_LIMIT",
                os.environ.get("SERVING_MAX_ROW_LIMIT", str(ServingDefaults.MAX_ROW_LIMIT))
            ),
            debounce_seconds=parse_float(
                "SERVING_DEBOUNCE_SECONDS",
                os.environ.get("SERVING_DEBOUNCE_SECONDS", str(ServingDefaults.DEBOUNCE_SECONDS))
            ),
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration dictionary."""
        return {
            "max_horizon_days": self.max_horizon_days,
            "default_row_limit": self.default_row_limit,
            "max_row_limit": self.max_row_limit,
            "debounce_seconds": self.debounce_seconds,
        }


# Export
__all__ = ["ServingConfig"]
