"""Pick generation and grading.

Main components:
- Pick / GradedPick / PickResult: pick records and their lifecycle
- PickScorer / PickGenerator / generate_picks: daily pick generation
- grade_picks / calculate_bet_profit: settlement against final scores
"""

from convergence_picks.picks.generator import (
    MARKET_SIGNALS,
    PickGenerator,
    PickScorer,
    generate_picks,
    side_edge,
)
from convergence_picks.picks.grading import (
    calculate_bet_profit,
    grade_game_pick,
    grade_picks,
    grade_prop_pick,
)
from convergence_picks.picks.models import GradedPick, Pick, PickResult, make_pick_id

__all__ = [
    # Models
    "Pick",
    "GradedPick",
    "PickResult",
    "make_pick_id",
    # Generation
    "PickScorer",
    "PickGenerator",
    "MARKET_SIGNALS",
    "generate_picks",
    "side_edge",
    # Grading
    "grade_picks",
    "grade_game_pick",
    "grade_prop_pick",
    "calculate_bet_profit",
]
