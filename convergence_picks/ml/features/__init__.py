"""Point-in-time feature computation.

Provides:
- build_team_record / build_head_to_head: season and head-to-head records
- compute_power_rating: results-based ratings
- compute_matchup_features: snapshot features for the market models
- compute_rest_profile: rest days, back-to-backs, schedule density
- discover_team_angles: situational ATS and O/U trend angles
"""

from convergence_picks.ml.features.situational import RestProfile, compute_rest_profile
from convergence_picks.ml.features.team_features import (
    HeadToHead,
    PowerRating,
    TeamRecord,
    build_head_to_head,
    build_team_record,
    compute_matchup_features,
    compute_power_rating,
)
from convergence_picks.ml.features.trend_angles import TrendAngle, discover_team_angles

__all__ = [
    "TeamRecord",
    "HeadToHead",
    "PowerRating",
    "RestProfile",
    "TrendAngle",
    "build_team_record",
    "build_head_to_head",
    "compute_power_rating",
    "compute_matchup_features",
    "compute_rest_profile",
    "discover_team_angles",
]
