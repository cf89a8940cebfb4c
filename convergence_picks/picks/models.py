"""Pick and graded-pick models.

A Pick is created once per (game, market[, prop]) per generation run and
starts PENDING. Grading moves it to WIN, LOSS or PUSH exactly once;
a graded pick is never reopened.
"""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from convergence_picks.ml.data.schema import Market, Sport
from convergence_picks.scoring.convergence import ReasoningEntry
from convergence_picks.signals.base import Direction


class PickResult(str, Enum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"


@dataclass(frozen=True)
class Pick:
    """A scored pick on one side of one market.

    Attributes:
        pick_id: Stable id derived from game, market, side and prop
        sport: Sport of the game
        game_id: Referenced game
        game_date: Date of the game
        home_team / away_team: Teams
        market: SPREAD, TOTAL or PROP
        side: Chosen direction
        line: Line the pick was made against (home spread, total or prop line)
        label: Display label (e.g. "Duke -4.5", "Under 141.5")
        score: Convergence score 0-100
        tier: Star tier (3, 4 or 5)
        edge: Model edge toward the chosen side, when known
        headline: One-line summary
        reasons: Contributing signals, agreeing first
        tier_table_version: Tier table used to assign ``tier``
        player_name / prop_stat: Set for prop picks
        result: Grading state
    """

    pick_id: str
    sport: Sport
    game_id: str
    game_date: date
    home_team: str
    away_team: str
    market: Market
    side: Direction
    line: float
    label: str
    score: int
    tier: int
    edge: float | None = None
    headline: str = ""
    reasons: tuple[ReasoningEntry, ...] = ()
    tier_table_version: str = ""
    player_name: str | None = None
    prop_stat: str | None = None
    result: PickResult = PickResult.PENDING

    @property
    def is_pending(self) -> bool:
        return self.result == PickResult.PENDING

    def with_result(self, result: PickResult) -> "Pick":
        """Return the graded copy of a pending pick.

        Raises:
            ValueError: If the pick is already graded or ``result`` is PENDING
        """
        if not self.is_pending:
            raise ValueError(f"Pick {self.pick_id} already graded as {self.result.value}")
        if result == PickResult.PENDING:
            raise ValueError("Cannot grade a pick as PENDING")
        return replace(self, result=result)


@dataclass(frozen=True)
class GradedPick:
    """A pick with its settled result.

    Attributes:
        pick: The pick, with ``result`` set
        actual_value: Margin from the picked side, total points, or stat value
    """

    pick: Pick
    actual_value: float | None = None

    @property
    def result(self) -> PickResult:
        return self.pick.result


def make_pick_id(
    game_id: str,
    market: Market,
    side: Direction,
    player_name: str | None = None,
    prop_stat: str | None = None,
) -> str:
    parts = [game_id, market.value, side.value]
    if player_name:
        parts += [player_name, prop_stat or ""]
    return ":".join(parts)
