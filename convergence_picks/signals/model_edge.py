"""Model-edge signals: a model's predicted line versus the market's.

Spread: predicted home margin from pre-game efficiency snapshots
(``home_em - away_em + home advantage``), falling back to season power
ratings when a team has no snapshot yet.

Total: prediction of the fitted totals RegressionModel, falling back to
the power-rating expected total.
"""

from convergence_picks.exceptions import MissingData
from convergence_picks.ml.data.schema import Sport
from convergence_picks.signals.base import (
    SPREAD_SCALE,
    TOTAL_SCALE,
    Direction,
    SignalResult,
    clamp,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

# Points of home advantage on top of an efficiency-margin difference
EFFICIENCY_HOME_ADVANTAGE = {
    Sport.NCAAMB: 2.0,
    Sport.NBA: 2.5,
    Sport.NFL: 2.5,
    Sport.NCAAF: 3.0,
}

# Home advantage on top of half the power-rating margin difference
POWER_HOME_ADVANTAGE = {
    Sport.NFL: 2.5,
    Sport.NBA: 3.0,
    Sport.NCAAMB: 3.0,
    Sport.NCAAF: 3.0,
}


def predicted_home_margin(ctx: SignalContext) -> tuple[float, str]:
    """Predicted home margin and the model that produced it.

    Raises:
        MissingData: If neither snapshots nor power ratings exist for both teams
    """
    game = ctx.game
    home, away = ctx.home_snapshot, ctx.away_snapshot
    if home is not None and away is not None:
        hca = 0.0 if game.neutral_site else EFFICIENCY_HOME_ADVANTAGE[game.sport]
        return home.adj_em - away.adj_em + hca, "efficiency"

    hp, ap = ctx.home_power, ctx.away_power
    if hp is not None and ap is not None:
        hca = 0.0 if game.neutral_site else POWER_HOME_ADVANTAGE[game.sport]
        return (hp.avg_margin - ap.avg_margin) / 2 + hca, "power"

    raise MissingData("No ratings for either model")


@signal("modelEdge")
def model_edge_spread(ctx: SignalContext) -> SignalResult:
    spread = require(ctx.game.spread, "spread")
    margin, source = predicted_home_margin(ctx)
    edge = margin + spread

    if source == "efficiency":
        magnitude = clamp(abs(edge) / 0.7, 0, 10)
        confidence = 0.8
        threshold = 0.5
    else:
        min_games = min(ctx.home_power.games, ctx.away_power.games)
        magnitude = clamp(abs(edge) / 1.0, 0, 10)
        confidence = clamp(0.3 + (min_games - 4) * 0.03, 0.3, 0.55)
        threshold = 1.0

    label = (
        f"{source.title()} model: predicted margin {margin:+.1f}, "
        f"line {spread:+g}, edge {edge:+.1f}"
    )
    if abs(edge) <= threshold:
        return SignalResult.neutral("modelEdge", label, edge=edge)

    return SignalResult(
        category="modelEdge",
        direction=Direction.HOME if edge > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=confidence,
        strength=SPREAD_SCALE.classify(magnitude),
        label=label,
        edge=edge,
    )


@signal("modelEdge")
def model_edge_total(ctx: SignalContext) -> SignalResult:
    total = require(ctx.game.total, "total")

    if ctx.predicted_total is not None:
        predicted = ctx.predicted_total
        source = "Totals model"
        confidence = 0.7
    else:
        hp, ap = ctx.home_power, ctx.away_power
        if hp is None or ap is None:
            raise MissingData("No totals model prediction or power ratings")
        predicted = (hp.avg_for + ap.avg_against) / 2 + (ap.avg_for + hp.avg_against) / 2
        source = "Power rating total"
        min_games = min(hp.games, ap.games)
        confidence = clamp(0.3 + (min_games - 4) * 0.03, 0.3, 0.55) * 0.9

    edge = predicted - total
    magnitude = clamp(abs(edge) / 2.0, 0, 10)
    label = f"{source}: predicted {predicted:.1f} vs line {total:g} ({edge:+.1f})"
    if abs(edge) <= 2.0:
        return SignalResult.neutral("modelEdge", label, edge=edge)

    return SignalResult(
        category="modelEdge",
        direction=Direction.OVER if edge > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=confidence,
        strength=TOTAL_SCALE.classify(magnitude),
        label=label,
        edge=edge,
    )
