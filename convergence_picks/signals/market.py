"""Market-edge and Elo-edge signals.

Market edge compares the Elo-implied home win probability with the
de-vigged moneyline probability. Elo edge compares the Elo-implied spread
with the posted spread.
"""

from convergence_picks.exceptions import MissingData
from convergence_picks.ml.data.odds import fair_moneyline_probs
from convergence_picks.ratings.elo import elo_to_spread, expected_win_prob, get_config
from convergence_picks.signals.base import (
    SPREAD_SCALE,
    Direction,
    SignalResult,
    clamp,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

MIN_PROB_EDGE = 0.02
MIN_ELO_SPREAD_EDGE = 1.5


def elo_rating_diff(ctx: SignalContext) -> float:
    """Home minus away Elo, including home advantage (0 at neutral sites)."""
    home = require(ctx.home_elo, "home Elo rating")
    away = require(ctx.away_elo, "away Elo rating")
    hfa = 0.0 if ctx.game.neutral_site else get_config(ctx.game.sport).home_field_advantage
    return home + hfa - away


@signal("marketEdge")
def market_edge(ctx: SignalContext) -> SignalResult:
    home_ml = require(ctx.game.home_moneyline, "home moneyline")
    away_ml = require(ctx.game.away_moneyline, "away moneyline")
    model_prob = expected_win_prob(elo_rating_diff(ctx))
    try:
        fair_home, _ = fair_moneyline_probs(home_ml, away_ml)
    except ValueError as e:
        raise MissingData(f"Unusable moneylines {home_ml}/{away_ml}: {e}") from e

    edge = model_prob - fair_home
    label = f"Model win prob {model_prob:.1%} vs market {fair_home:.1%} ({edge:+.1%})"
    if abs(edge) < MIN_PROB_EDGE:
        return SignalResult.neutral("marketEdge", label)

    magnitude = clamp(abs(edge) * 50, 0, 10)
    return SignalResult(
        category="marketEdge",
        direction=Direction.HOME if edge > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=0.6,
        strength=SPREAD_SCALE.classify(magnitude),
        label=label,
        edge=edge,
    )


@signal("eloEdge")
def elo_edge(ctx: SignalContext) -> SignalResult:
    spread = require(ctx.game.spread, "spread")
    predicted = elo_to_spread(elo_rating_diff(ctx))
    edge = predicted + spread
    label = f"Elo: predicted margin {predicted:+.1f}, line {spread:+g}, edge {edge:+.1f}"
    if abs(edge) < MIN_ELO_SPREAD_EDGE:
        return SignalResult.neutral("eloEdge", label)

    magnitude = min(abs(edge) / 0.8, 10.0)
    return SignalResult(
        category="eloEdge",
        direction=Direction.HOME if edge > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=min(0.5 + abs(edge) * 0.04, 0.85),
        strength=SPREAD_SCALE.classify(magnitude),
        label=label,
        edge=edge,
    )
