"""
Reward Data Models.

Canonical per-hotspot daily reward row and static hotspot location.
Amounts are in bones (1 token = 100,000,000 bones).

Exports:
    CanonicalDailyRow: Normalized reward event
    HotspotLocation: One hotspot registry entry
"""

import re
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CanonicalDailyRow(BaseModel):
    """
    One hotspot's rewards for one day, after normalization.

    Invariants:
        - every amount is finite and >= 0
        - total_rewards == beacon + witness + dc_transfer unless explicit_total
    """

    date: str = Field(..., description="Reward day (YYYY-MM-DD)")
    hotspot: str = Field(..., min_length=1, description="Hotspot public key")
    beacon: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    witness: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    dc_transfer: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    total_rewards: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    explicit_total: bool = Field(
        default=False,
        description="True when the upstream payload supplied its own total"
    )
    lat: Optional[float] = Field(default=None, description="Carried latitude, if any")
    lon: Optional[float] = Field(default=None, description="Carried longitude, if any")

    @field_validator('date')
    @classmethod
    def validate_date(cls, v):
        if not DATE_PATTERN.match(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        return v

    @model_validator(mode='after')
    def fill_total(self):
        if not self.explicit_total:
            self.total_rewards = self.beacon + self.witness + self.dc_transfer
        return self

    @property
    def poc_rewards(self) -> float:
        """Proof-of-coverage rewards (beacon + witness)."""
        return self.beacon + self.witness


class HotspotLocation(BaseModel):
    """Static registry entry: where a hotspot is deployed."""

    hotspot: str = Field(..., min_length=1)
    lat: float
    lon: float
    gain: Optional[float] = None
    elevation: Optional[float] = None
