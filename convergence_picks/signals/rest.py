"""Rest / back-to-back signal for the spread market.

Favors the better-rested side: a back-to-back against a rested opponent
counts most, then the rest-day gap, then schedule density.
"""

from convergence_picks.exceptions import MissingData
from convergence_picks.signals.base import (
    SPREAD_SCALE,
    Direction,
    SignalResult,
    clamp,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

B2B_POINTS = 4.0
REST_DAY_POINTS = 0.75
DENSITY_POINTS = 0.5


@signal("rest")
def rest_signal(ctx: SignalContext) -> SignalResult:
    rest = require(ctx.rest, "rest profile")
    if not (rest.home_has_history and rest.away_has_history):
        raise MissingData("No prior game for one side")

    score = 0.0
    parts = []
    if rest.home_b2b != rest.away_b2b:
        score += -B2B_POINTS if rest.home_b2b else B2B_POINTS
        parts.append(f"{'Home' if rest.home_b2b else 'Away'} on back-to-back")

    if rest.rest_advantage:
        score += rest.rest_advantage * REST_DAY_POINTS
        parts.append(
            f"Rest {rest.home_rest_days:g}d vs {rest.away_rest_days:g}d"
        )

    density_gap = rest.away_games_last_7 - rest.home_games_last_7
    if abs(density_gap) >= 2:
        score += density_gap * DENSITY_POINTS
        parts.append(
            f"Games in last 7: {rest.home_games_last_7} vs {rest.away_games_last_7}"
        )

    magnitude = clamp(abs(score), 0, 10)
    if magnitude < 1:
        return SignalResult.neutral("rest", "Rest even")

    return SignalResult(
        category="rest",
        direction=Direction.HOME if score > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=0.45,
        strength=SPREAD_SCALE.classify(magnitude),
        label=", ".join(parts),
    )
