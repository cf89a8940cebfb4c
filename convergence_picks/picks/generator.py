"""Daily pick generation.

For one sport and date: load prior games, replay Elo, fit the totals model
on history before the date, build a point-in-time context per game, run the
signal library per market, score with the convergence scorer and keep the
sides that reach a tier.

Games are scored on a thread pool. A failure scoring one game is logged
and skips that game only; configuration and look-ahead errors abort the
whole run.

Example:
    >>> source = InMemoryGameSource(games=history, upcoming=slate, snapshots=snaps)
    >>> picks = generate_picks(Sport.NCAAMB, date(2025, 1, 15), source)
    >>> [(p.label, p.tier) for p in picks]
    [('Duke -4.5', 5), ('Under 141.5', 4)]
"""

import contextvars
import dataclasses
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date

from convergence_picks.config import Settings, get_settings
from convergence_picks.exceptions import (
    InsufficientTrainingData,
    InvalidConfiguration,
    LookaheadViolation,
)
from convergence_picks.ml.data.schema import GameContext, Market, PropCandidate, Sport, as_date
from convergence_picks.ml.data.sources import GameSource
from convergence_picks.ml.models.regression import RegressionModel
from convergence_picks.ml.training.validation import build_matchup_frame, fit_totals_model
from convergence_picks.monitoring import bind_correlation_id, get_logger, unbind_correlation_id
from convergence_picks.picks.headlines import prop_headline, spread_headline, total_headline
from convergence_picks.picks.models import Pick, make_pick_id
from convergence_picks.ratings.elo import EloEngine, EloHistory
from convergence_picks.scoring.convergence import score_convergence
from convergence_picks.scoring.tiers import REJECT, TIER_REGISTRY, TierTable, assign_tier
from convergence_picks.scoring.weights import WeightTable, default_weight_table
from convergence_picks.signals import (
    PROP_SIGNALS,
    SPREAD_SIGNALS,
    TOTAL_SIGNALS,
    Direction,
    SignalContext,
    SignalResult,
    build_signal_context,
)

log = get_logger(__name__)

SignalFn = Callable[[SignalContext], SignalResult]

MARKET_SIGNALS: dict[Market, tuple[SignalFn, ...]] = {
    Market.SPREAD: SPREAD_SIGNALS,
    Market.TOTAL: TOTAL_SIGNALS,
    Market.PROP: PROP_SIGNALS,
}

# Signal whose edge feeds the edge tier, per market
_EDGE_CATEGORY = {
    Market.SPREAD: "modelEdge",
    Market.TOTAL: "modelEdge",
    Market.PROP: "propCushion",
}


def side_edge(signals: Sequence[SignalResult], market: Market, side: Direction) -> float | None:
    """Edge toward ``side`` from the market's edge signal.

    Signal edges are signed toward home/over; an edge pointing the other way
    counts as zero for the chosen side.

    Returns:
        Non-negative edge, or None when the edge signal had no data
    """
    category = _EDGE_CATEGORY[market]
    for s in signals:
        if s.category == category and s.edge is not None:
            signed = s.edge if side in (Direction.HOME, Direction.OVER) else -s.edge
            return max(signed, 0.0)
    return None


class PickScorer:
    """Turn one game's context into zero or more picks.

    Attributes:
        sport: Sport being scored
        tier_table: Tier table applied to every pick
        min_active: Active signals required to score away from 50
    """

    def __init__(
        self,
        sport: Sport | str,
        tier_table: TierTable,
        weights: dict[Market, WeightTable] | None = None,
        min_active: int = 3,
        fallback_weight: float = 0.1,
    ) -> None:
        self.sport = Sport(sport)
        self.tier_table = tier_table
        self.min_active = min_active
        self._weights = {
            market: (weights or {}).get(market)
            or default_weight_table(self.sport, market, fallback=fallback_weight)
            for market in Market
        }

    def weights_for(self, market: Market) -> WeightTable:
        return self._weights[market]

    def score_game(self, ctx: SignalContext) -> list[Pick]:
        """Score spread, total and every offered prop for one game."""
        game = ctx.game
        picks = []

        if game.spread is not None:
            pick = self.score_market(ctx, Market.SPREAD)
            if pick is not None:
                picks.append(pick)

        if game.total is not None:
            pick = self.score_market(ctx, Market.TOTAL)
            if pick is not None:
                picks.append(pick)

        for prop in game.props:
            pick = self.score_market(dataclasses.replace(ctx, prop=prop), Market.PROP)
            if pick is not None:
                picks.append(pick)

        return picks

    def score_market(self, ctx: SignalContext, market: Market) -> Pick | None:
        """Run the market's signals and return a pick if one reaches a tier.

        Prop markets read the prop from ``ctx.prop``.
        """
        signals = [fn(ctx) for fn in MARKET_SIGNALS[market]]
        result = score_convergence(signals, self._weights[market], min_active=self.min_active)
        if result.direction == Direction.NEUTRAL:
            return None

        edge = side_edge(signals, market, result.direction)
        thresholds = self.tier_table.thresholds_for(self.sport, market)
        tier = assign_tier(result.score, edge, thresholds)
        if tier == REJECT:
            return None

        game = ctx.game
        side = result.direction
        prop = ctx.prop if market == Market.PROP else None
        line, label, headline = _describe(game, market, side, tier, signals, prop)

        return Pick(
            pick_id=make_pick_id(
                game.game_id,
                market,
                side,
                prop.player_name if prop else None,
                prop.stat if prop else None,
            ),
            sport=game.sport,
            game_id=game.game_id,
            game_date=game.game_date,
            home_team=game.home_team,
            away_team=game.away_team,
            market=market,
            side=side,
            line=line,
            label=label,
            score=result.score,
            tier=tier,
            edge=edge,
            headline=headline,
            reasons=result.reasons,
            tier_table_version=self.tier_table.version,
            player_name=prop.player_name if prop else None,
            prop_stat=prop.stat if prop else None,
        )


def _describe(
    game: GameContext,
    market: Market,
    side: Direction,
    tier: int,
    signals: list[SignalResult],
    prop: PropCandidate | None,
) -> tuple[float, str, str]:
    """(line, label, headline) for a pick."""
    if market == Market.SPREAD:
        if side == Direction.HOME:
            team, team_line = game.home_team, game.spread
        else:
            team, team_line = game.away_team, -game.spread
        label = f"{team} {team_line:+g}"
        return game.spread, label, spread_headline(team, team_line, tier, signals, side)

    word = "Over" if side == Direction.OVER else "Under"
    if market == Market.TOTAL:
        label = f"{word} {game.total:g}"
        return game.total, label, total_headline(word, game.total, tier, signals, side)

    label = f"{prop.player_name} {word} {prop.line:g} {prop.stat}"
    return prop.line, label, prop_headline(prop.player_name, prop.stat, word, prop.line, signals, side)


class PickGenerator:
    """Generate picks for a sport and date from a GameSource.

    Example:
        >>> generator = PickGenerator(source)
        >>> picks = generator.generate(Sport.NFL, date(2025, 1, 12))
    """

    def __init__(
        self,
        source: GameSource,
        settings: Settings | None = None,
        tier_table: TierTable | None = None,
        weights: dict[Market, WeightTable] | None = None,
        totals_features: list[str] | None = None,
    ) -> None:
        self.source = source
        self.settings = settings or get_settings()
        self.tier_table = tier_table or TIER_REGISTRY.get(self.settings.tier_table_version)
        self.weights = weights
        self.totals_features = totals_features

    def generate(self, sport: Sport | str, game_date: date | None = None) -> list[Pick]:
        """Picks for every upcoming game of ``sport`` on ``game_date``.

        Args:
            sport: Sport to generate for
            game_date: Slate date (defaults to today)

        Returns:
            Picks sorted by score (highest first), then game, market and side

        Raises:
            InvalidConfiguration: If weights or tier tables are malformed
            LookaheadViolation: If a point-in-time lookup returned future data
        """
        sport = Sport(sport)
        day = as_date(game_date or date.today())
        bind_correlation_id(f"picks-{sport.value}-{day.isoformat()}")
        try:
            return self._generate(sport, day)
        finally:
            unbind_correlation_id()

    def _generate(self, sport: Sport, day: date) -> list[Pick]:
        games = self.source.get_upcoming_games(sport, day)
        if not games:
            log.info("no_games", sport=sport.value, date=day.isoformat())
            return []

        history = [g for g in self.source.get_completed_games(sport) if g.game_date < day]
        store = self.source.snapshot_store(sport)
        elo = EloHistory(EloEngine(sport).replay(history))
        totals_model = self._fit_totals_model(history, store)
        player_logs = [
            entry for entry in self.source.get_player_logs(sport) if entry.game_date < day
        ]

        scorer = PickScorer(
            sport,
            self.tier_table,
            weights=self.weights,
            min_active=self.settings.min_active_signals,
            fallback_weight=self.settings.fallback_weight,
        )

        def score_one(game: GameContext) -> list[Pick]:
            try:
                ctx = build_signal_context(
                    game,
                    history,
                    store=store,
                    elo=elo,
                    totals_model=totals_model,
                    player_logs=player_logs,
                )
                return scorer.score_game(ctx)
            except (LookaheadViolation, InvalidConfiguration):
                raise
            except Exception as e:
                log.error("game_scoring_failed", game_id=game.game_id, error=str(e))
                return []

        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            futures = [
                executor.submit(contextvars.copy_context().run, score_one, game) for game in games
            ]
            picks = [pick for future in futures for pick in future.result()]

        picks.sort(key=lambda p: (-p.score, p.game_id, p.market.value, p.side.value, p.pick_id))
        log.info(
            "picks_generated",
            sport=sport.value,
            date=day.isoformat(),
            games=len(games),
            picks=len(picks),
            tier_table=self.tier_table.version,
        )
        return picks

    def _fit_totals_model(self, history, store) -> RegressionModel | None:
        if not len(store):
            return None
        frame = build_matchup_frame(history, store)
        try:
            return fit_totals_model(
                frame,
                features=self.totals_features,
                ridge_lambda=self.settings.ridge_lambda,
            )
        except InsufficientTrainingData as e:
            log.warning("totals_model_skipped", rows=e.count, required=e.required)
            return None


def generate_picks(
    sport: Sport | str,
    game_date: date | None,
    source: GameSource,
    **kwargs,
) -> list[Pick]:
    """Convenience wrapper around ``PickGenerator(source, **kwargs).generate``."""
    return PickGenerator(source, **kwargs).generate(sport, game_date)
