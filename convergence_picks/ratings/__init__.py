"""Elo ratings replayed from game results.

Main components:
- EloEngine: chronological replay with season regression
- EloHistory: ratings as they stood entering a game
- recalculate_elo: full deterministic rebuild for a sport
"""

from convergence_picks.ratings.elo import (
    ELO_POINTS_PER_SPREAD_POINT,
    SPORT_CONFIGS,
    EloConfig,
    EloEngine,
    EloHistory,
    EloRating,
    elo_to_spread,
    expected_win_prob,
    get_config,
    recalculate_elo,
)

__all__ = [
    "EloConfig",
    "EloRating",
    "EloEngine",
    "EloHistory",
    "SPORT_CONFIGS",
    "ELO_POINTS_PER_SPREAD_POINT",
    "get_config",
    "expected_win_prob",
    "elo_to_spread",
    "recalculate_elo",
]
