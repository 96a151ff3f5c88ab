# ============================================================================
# PIPELINE CONFIGURATION
# ============================================================================
# STATUS: Configuration - batch grid refresh settings
# PURPOSE: Input/output paths, refresh window, transmit-scale target, units
# ============================================================================
"""
Batch pipeline configuration.

Controls where the refresh handler reads raw reward events and the hotspot
registry from, where the grid table is written, and the numeric knobs of
the derived features.

Directory layout under ``data_dir``:

    features/iot/h3/r{res}/latest.parquet    grid table (one per resolution)
    forecasts/iot/h3/r{res}/latest.parquet   forecast rows (written by the model)
"""

import os
from pathlib import Path
from pydantic import BaseModel, Field

from .defaults import PipelineDefaults, parse_int, parse_float


class PipelineConfig(BaseModel):
    """
    Batch grid refresh configuration.

    Configuration Fields:
    ---------------------
    data_dir: Root directory for grid tables and forecasts
    source_path: Raw reward events (JSON array or JSON Lines)
    hotspots_path: Hotspot registry (JSON array of {hotspot, lat, lon})
    refresh_days: Only events dated within this many days of as_of are kept
        - 0 or negative disables the window
    target_density: Hotspots per cell at which transmit scale reaches 1
    bones_per_token: Scale applied to token-denominated ("formatted") amounts
    """

    data_dir: str = Field(
        default=PipelineDefaults.DATA_DIR,
        description="Root directory for persisted grid tables and forecast files."
    )

    source_path: str = Field(
        default=PipelineDefaults.SOURCE_PATH,
        description="Raw reward events file (JSON array or JSON Lines)."
    )

    hotspots_path: str = Field(
        default=PipelineDefaults.HOTSPOTS_PATH,
        description="Hotspot registry file with static coordinates."
    )

    refresh_days: int = Field(
        default=PipelineDefaults.REFRESH_DAYS,
        description="Trailing day window kept by a refresh (<= 0 keeps everything)."
    )

    target_density: float = Field(
        default=PipelineDefaults.TARGET_DENSITY,
        gt=0,
        description="Target hotspots per cell for transmit_scale_approx."
    )

    bones_per_token: int = Field(
        default=PipelineDefaults.BONES_PER_TOKEN,
        gt=0,
        description="Bones per token, applied to formatted token amounts."
    )

    max_issue_warnings: int = Field(
        default=PipelineDefaults.MAX_ISSUE_WARNINGS,
        ge=0,
        description="Per-record normalization warnings logged before summarizing."
    )

    def grid_table_path(self, resolution: int) -> Path:
        """Path of the persisted grid table for a resolution."""
        return Path(self.data_dir) / "features" / "iot" / "h3" / f"r{resolution}" / "latest.parquet"

    def forecast_path(self, resolution: int) -> Path:
        """Path of the forecast rows for a resolution."""
        return Path(self.data_dir) / "forecasts" / "iot" / "h3" / f"r{resolution}" / "latest.parquet"

    @classmethod
    def from_environment(cls) -> "PipelineConfig":
        """
        Load pipeline configuration from environment variables.

        Environment Variables:
        ---------------------
        H3_DATA_DIR: Root data directory (default: "data")
        IOT_REWARDS_PATH: Raw rewards file (default: "data/raw/iot_rewards.jsonl")
        IOT_HOTSPOTS_PATH: Hotspot registry (default: "data/raw/hotspots.json")
        IOT_REFRESH_DAYS: Trailing day window (default: 60)
        IOT_TARGET_DENSITY: Transmit-scale target density (default: 1.0)

        Returns:
            PipelineConfig: Configured pipeline settings
        """
        return cls(
            data_dir=os.environ.get("H3_DATA_DIR", PipelineDefaults.DATA_DIR),
            source_path=os.environ.get("IOT_REWARDS_PATH", PipelineDefaults.SOURCE_PATH),
            hotspots_path=os.environ.get("IOT_HOTSPOTS_PATH", PipelineDefaults.HOTSPOTS_PATH),
            refresh_days=parse_int(
                "IOT_REFRESH_DAYS",
                os.environ.get("IOT_REFRESH_DAYS", str(PipelineDefaults.REFRESH_DAYS))
            ),
            target_density=parse_float(
                "IOT_TARGET_DENSITY",
                os.environ.get("IOT_TARGET_DENSITY", str(PipelineDefaults.TARGET_DENSITY))
            ),
        )

    def debug_dict(self) -> dict:
        """
        Return debug-friendly configuration dictionary.

        Returns:
            dict: Configuration with all fields visible
        """
        return {
            "data_dir": self.data_dir,
            "source_path": self.source_path,
            "hotspots_path": self.hotspots_path,
            "refresh_days": self.refresh_days,
            "target_density": self.target_density,
            "bones_per_token": self.bones_per_token,
            "max_issue_warnings": self.max_issue_warnings,
        }


# Export
__all__ = ["PipelineConfig"]
