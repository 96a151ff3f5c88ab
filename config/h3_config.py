# ============================================================================
# H3 GRID CONFIGURATION
# ============================================================================
# STATUS: Configuration - H3 hexagonal grid settings
# PURPOSE: Default grid resolution and density neighborhood ring
# ============================================================================
"""
H3 grid configuration.

H3 Overview:
------------
H3 is a discrete global grid of hexagonal cells (plus 12 pentagons per
resolution).
- Resolutions 0-15 (0 = coarsest, 15 = finest)
- Resolution 7 cells ≈ 5 km² (town scale)
- Resolution 9 cells ≈ 0.1 km² (neighborhood block scale)

Reward events are bucketed onto a single resolution per grid table; a
caller can build tables for several resolutions side by side.
"""

import os
from pydantic import BaseModel, Field

from .defaults import H3Defaults, parse_int


class H3Config(BaseModel):
    """
    H3 grid configuration.

    Configuration Fields:
    ---------------------
    default_resolution: Resolution used when a refresh or query omits one
        - Range: 0 (coarsest) to 15 (finest)
        - Default: 9

    density_ring: Grid distance of the neighborhood summed into density
        - Default: 1 (the cell plus its immediate neighbors)
    """

    default_resolution: int = Field(
        default=H3Defaults.DEFAULT_RESOLUTION,
        ge=H3Defaults.MIN_RESOLUTION,
        le=H3Defaults.MAX_RESOLUTION,
        description="Default H3 resolution (0-15) for grid refresh and queries."
    )

    density_ring: int = Field(
        default=H3Defaults.DENSITY_RING,
        ge=1,
        le=3,
        description="Grid-disk radius used for neighborhood density (density_k1 uses 1)."
    )

    @classmethod
    def from_environment(cls) -> "H3Config":
        """
        Load H3 configuration from environment variables.

        Environment Variables:
        ---------------------
        H3_DEFAULT_RESOLUTION: Default H3 resolution (default: 9)
        H3_DENSITY_RING: Density neighborhood radius (default: 1)

        Returns:
            H3Config: Configured H3 settings
        """
        return cls(
            default_resolution=parse_int(
                "H3_DEFAULT_RESOLUTION",
                os.environ.get("H3_DEFAULT_RESOLUTION", str(H3Defaults.DEFAULT_RESOLUTION))
            ),
            density_ring=parse_int(
                "H3_DENSITY_RING",
                os.environ.get("H3_DENSITY_RING", str(H3Defaults.DENSITY_RING))
            ),
        )

    def debug_dict(self) -> dict:
        """
        Return debug-friendly configuration dictionary.

        Returns:
            dict: Configuration with all fields visible
        """
        return {
            "default_resolution": self.default_resolution,
            "density_ring": self.density_ring,
        }


# Export
__all__ = ["H3Config"]
