"""Convergence scoring and confidence tiers.

Main components:
- WeightTable: per-sport, per-market signal weights
- score_convergence: signals + weights -> (score, direction, reasons)
- TierTable / TierRegistry / assign_tier: versioned star-tier thresholds
"""

from convergence_picks.scoring.convergence import (
    ConvergenceResult,
    ReasoningEntry,
    score_convergence,
)
from convergence_picks.scoring.tiers import (
    TIER_REGISTRY,
    EdgeTierThresholds,
    TierRegistry,
    TierTable,
    TierThresholds,
    assign_tier,
    make_tier_table,
)
from convergence_picks.scoring.weights import WeightTable, default_weight_table

__all__ = [
    # Weights
    "WeightTable",
    "default_weight_table",
    # Scorer
    "ConvergenceResult",
    "ReasoningEntry",
    "score_convergence",
    # Tiers
    "EdgeTierThresholds",
    "TierThresholds",
    "TierTable",
    "TierRegistry",
    "TIER_REGISTRY",
    "assign_tier",
    "make_tier_table",
]
