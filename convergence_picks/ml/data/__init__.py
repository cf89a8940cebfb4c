"""Data schemas and point-in-time access.

Provides:
- TeamRatingSnapshot / GameRecord / GameContext: core records
- SnapshotStore: point-in-time rating lookups
- GameSource / InMemoryGameSource: what the engine reads from ingestion
- american_to_decimal / remove_vig / fair_moneyline_probs: odds helpers
"""

from convergence_picks.ml.data.odds import (
    american_to_decimal,
    fair_moneyline_probs,
    get_market_vig,
    remove_vig,
)
from convergence_picks.ml.data.schema import (
    GameContext,
    GameRecord,
    Market,
    PlayerGameLog,
    PropCandidate,
    Sport,
    SpreadResult,
    TeamRatingSnapshot,
    TotalResult,
    WeatherForecast,
)
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.data.sources import GameSource, InMemoryGameSource

__all__ = [
    # Schema
    "Sport",
    "Market",
    "SpreadResult",
    "TotalResult",
    "TeamRatingSnapshot",
    "GameRecord",
    "GameContext",
    "WeatherForecast",
    "PropCandidate",
    "PlayerGameLog",
    # Access
    "SnapshotStore",
    "GameSource",
    "InMemoryGameSource",
    # Odds
    "american_to_decimal",
    "remove_vig",
    "get_market_vig",
    "fair_moneyline_probs",
]
