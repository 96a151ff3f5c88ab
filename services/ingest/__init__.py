# ============================================================================
# INGEST SERVICE MODULE
# ============================================================================
# STATUS: Service Module - raw reward ingest
# PURPOSE: Normalize upstream reward payloads into canonical daily rows
# EXPORTS: RewardNormalizer, normalize_batch
# ============================================================================
"""
Ingest Service Module.

Usage:
    from services.ingest import normalize_batch
    rows, stats = normalize_batch(records)
"""

from .reward_normalizer import RewardNormalizer, normalize_batch

__all__ = [
    'RewardNormalizer',
    'normalize_batch',
]
