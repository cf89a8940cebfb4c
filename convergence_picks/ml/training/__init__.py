"""Training and validation utilities.

This module provides:
- Season splits and monthly walk-forward folds
- Matchup feature frames and market model fitting
- Regression evaluation (MAE, RMSE, R²)
"""

from convergence_picks.ml.training.validation import (
    DEFAULT_FEATURES,
    TOTALS_FEATURES,
    Fold,
    build_matchup_frame,
    evaluate_regression,
    fit_market_model,
    fit_totals_model,
    season_split,
    walk_forward_folds,
)

__all__ = [
    "TOTALS_FEATURES",
    "DEFAULT_FEATURES",
    "Fold",
    "season_split",
    "walk_forward_folds",
    "build_matchup_frame",
    "fit_market_model",
    "fit_totals_model",
    "evaluate_regression",
]
