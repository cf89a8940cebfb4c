"""Walk-forward backtesting engine for pick configurations.

Evaluates a candidate (feature set, ridge λ, weight table, tier thresholds)
against historical games and grades it.

Key principle: At each point in time, the model only knows past data.
The market model is fit on the training seasons (or, in walk-forward mode,
on every game before the evaluated month), signal contexts only read games
and snapshots dated before the game, and held-out seasons must come after
the training seasons.

Two strategies are supported:
- ``model``: pick the side the fitted regression model favors against the
  line, filtered by minimum edge and edge tier
- ``convergence``: run the full signal library and convergence scorer,
  exactly as live pick generation does
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from convergence_picks.config import get_settings
from convergence_picks.exceptions import InsufficientTrainingData, InvalidConfiguration
from convergence_picks.ml.backtesting.metrics import (
    CandidateGrade,
    GradeGate,
    SplitMetrics,
    grade_candidate,
    overfit_gap,
    summarize_picks,
)
from convergence_picks.ml.backtesting.report import BacktestReport, generate_report
from convergence_picks.ml.data.schema import GameContext, GameRecord, Market, Sport
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.features.team_features import compute_matchup_features
from convergence_picks.ml.models.regression import RegressionModel
from convergence_picks.ml.training.validation import (
    DEFAULT_FEATURES,
    MARKET_TARGETS,
    build_matchup_frame,
    evaluate_regression,
    fit_market_model,
    season_split,
    walk_forward_folds,
)
from convergence_picks.monitoring import bind_correlation_id, get_logger, unbind_correlation_id
from convergence_picks.picks.generator import PickScorer
from convergence_picks.picks.grading import grade_game_pick
from convergence_picks.picks.models import GradedPick, Pick, PickResult, make_pick_id
from convergence_picks.ratings.elo import EloEngine, EloHistory
from convergence_picks.scoring.tiers import REJECT, TierThresholds, edge_tier, make_tier_table
from convergence_picks.scoring.weights import WeightTable
from convergence_picks.signals import Direction, build_signal_context

log = get_logger(__name__)


class Strategy(str, Enum):
    MODEL = "model"
    CONVERGENCE = "convergence"


def _default_iterations() -> int:
    return get_settings().bootstrap_iterations


def _default_seed() -> int:
    return get_settings().bootstrap_seed


class BacktestConfig(BaseModel):
    """One candidate configuration to evaluate.

    Attributes:
        sport: Sport to backtest
        market: SPREAD or TOTAL
        train_seasons: Seasons the model is fit on
        test_seasons: Held-out seasons, all after the training seasons
        strategy: ``model`` or ``convergence``
        features: Regression features (market default when None)
        ridge_lambda: Ridge penalty for the market model
        weights: Category weights for the convergence strategy (default table when None)
        tiers: Score and edge tier thresholds under evaluation
        min_edge: Minimum |edge| to take a pick
        min_tier: Lowest tier that counts as a pick
        min_active: Active signals required by the convergence scorer
        walk_forward: Refit the model month by month over the test seasons
        min_fold_picks: Raise if a walk-forward fold yields fewer picks (0 disables)
        bootstrap_iterations / bootstrap_seed: CI resampling
        gate: Grade gates
    """

    sport: Sport
    market: Market = Market.TOTAL
    train_seasons: list[int]
    test_seasons: list[int]
    strategy: Strategy = Strategy.MODEL
    features: list[str] | None = None
    ridge_lambda: float = Field(default=0.0, ge=0)
    weights: dict[str, float] | None = None
    tiers: TierThresholds = Field(default_factory=TierThresholds)
    min_edge: float = Field(default=0.0, ge=0)
    min_tier: int = Field(default=3, ge=3, le=5)
    min_active: int = Field(default=3, ge=0)
    walk_forward: bool = False
    min_fold_picks: int = Field(default=0, ge=0)
    bootstrap_iterations: int = Field(default_factory=_default_iterations, ge=1)
    bootstrap_seed: int = Field(default_factory=_default_seed)
    gate: GradeGate = Field(default_factory=GradeGate)

    @field_validator("market")
    @classmethod
    def validate_market(cls, v: Market) -> Market:
        if v not in MARKET_TARGETS:
            raise ValueError(f"Backtests support spread and total markets, not {v.value}")
        return v

    @model_validator(mode="after")
    def validate_seasons(self) -> "BacktestConfig":
        if not self.train_seasons or not self.test_seasons:
            raise ValueError("train_seasons and test_seasons must both be non-empty")
        if set(self.train_seasons) & set(self.test_seasons):
            raise ValueError("train_seasons and test_seasons overlap")
        if max(self.train_seasons) >= min(self.test_seasons):
            raise ValueError("Every test season must come after every train season")
        return self

    @property
    def feature_names(self) -> list[str]:
        return list(self.features or DEFAULT_FEATURES[self.market])


def load_backtest_config(data: Mapping) -> BacktestConfig:
    """Validate a plain mapping into a BacktestConfig.

    Raises:
        InvalidConfiguration: If any field fails validation
    """
    try:
        return BacktestConfig(**data)
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid backtest config: {e}") from e


@dataclass
class FoldResult:
    """Outcome of one walk-forward month."""

    month: date
    train_rows: int
    picks: int
    wins: int
    losses: int


@dataclass
class BacktestResult:
    """Results from a backtest run.

    Attributes:
        config: Configuration evaluated
        train: Metrics on the training seasons (in-sample)
        test: Metrics on the held-out seasons
        overfit_gap: train accuracy - test accuracy, in points
        grade: Candidate grade with gate failures
        model: Market model fit on the training seasons
        model_eval: MAE / RMSE / R² of that model on the held-out seasons
        folds: Walk-forward folds (empty unless walk_forward)
        picks: Graded held-out picks
        train_picks: Graded in-sample picks
    """

    config: BacktestConfig
    train: SplitMetrics
    test: SplitMetrics
    overfit_gap: float
    grade: CandidateGrade
    model: RegressionModel | None = None
    model_eval: dict[str, float] = field(default_factory=dict)
    folds: list[FoldResult] = field(default_factory=list)
    picks: list[GradedPick] = field(default_factory=list)
    train_picks: list[GradedPick] = field(default_factory=list)


class BacktestEngine:
    """Evaluates a BacktestConfig over historical games.

    Example:
        >>> config = BacktestConfig(
        ...     sport=Sport.NCAAMB,
        ...     market=Market.TOTAL,
        ...     train_seasons=[2023, 2024],
        ...     test_seasons=[2025],
        ...     ridge_lambda=10.0,
        ... )
        >>> result = BacktestEngine(config).run(games, store)
        >>> print(f"Held-out accuracy: {result.test.accuracy:.1f}%")
    """

    def __init__(self, config: BacktestConfig) -> None:
        self.config = config
        self._thresholds = config.tiers
        self._scorer: PickScorer | None = None
        if config.strategy == Strategy.CONVERGENCE:
            table = make_tier_table(
                version="backtest-candidate",
                created=date.today(),
                default=config.tiers.model_dump(),
            )
            weights = None
            if config.weights is not None:
                weights = {config.market: WeightTable(config.weights)}
            self._scorer = PickScorer(
                config.sport,
                table,
                weights=weights,
                min_active=config.min_active,
            )

    def run(self, games: list[GameRecord], store: SnapshotStore | None = None) -> BacktestResult:
        """Run the backtest.

        Args:
            games: Historical games for the sport (any order; unsettled
                outcomes are derived from final scores)
            store: Point-in-time rating snapshots

        Returns:
            BacktestResult with in-sample and held-out metrics

        Raises:
            InsufficientTrainingData: If the training seasons cannot fit the
                model, or a fold yields fewer picks than ``min_fold_picks``
        """
        cfg = self.config
        store = store if store is not None else SnapshotStore()
        games = sorted(
            (g.settled() for g in games if g.sport == cfg.sport and g.is_final),
            key=lambda g: (g.game_date, g.game_id),
        )
        train_games, test_games = season_split(games, cfg.train_seasons, cfg.test_seasons)

        bind_correlation_id(f"backtest-{cfg.sport.value}-{cfg.market.value}")
        try:
            log.info(
                "backtest_started",
                strategy=cfg.strategy.value,
                train_games=len(train_games),
                test_games=len(test_games),
                features=cfg.feature_names,
                ridge_lambda=cfg.ridge_lambda,
            )
            return self._run(games, train_games, test_games, store)
        finally:
            unbind_correlation_id()

    def _run(
        self,
        games: list[GameRecord],
        train_games: list[GameRecord],
        test_games: list[GameRecord],
        store: SnapshotStore,
    ) -> BacktestResult:
        cfg = self.config
        frame = build_matchup_frame(games, store)
        train_ids = {g.game_id for g in train_games}
        test_ids = {g.game_id for g in test_games}
        train_frame = frame[frame["game_id"].isin(train_ids)]
        test_frame = frame[frame["game_id"].isin(test_ids)]

        model = fit_market_model(
            train_frame, cfg.market, features=cfg.feature_names, ridge_lambda=cfg.ridge_lambda
        )
        elo = EloHistory(EloEngine(cfg.sport).replay(games))

        train_picks = self._evaluate(train_games, games, store, elo, model)

        folds: list[FoldResult] = []
        if cfg.walk_forward:
            test_picks = self._walk_forward(games, frame, store, elo, folds)
        else:
            test_picks = self._evaluate(test_games, games, store, elo, model)

        iterations, seed = cfg.bootstrap_iterations, cfg.bootstrap_seed
        train_metrics = summarize_picks(train_picks, iterations=iterations, seed=seed)
        test_metrics = summarize_picks(test_picks, iterations=iterations, seed=seed)
        gap = overfit_gap(train_metrics.accuracy, test_metrics.accuracy)
        grade = grade_candidate(
            test_metrics.accuracy, gap, test_metrics.roi_pct, test_metrics.picks, cfg.gate
        )

        model_eval = evaluate_regression(model, test_frame, test_frame[MARKET_TARGETS[cfg.market]])

        log.info(
            "backtest_complete",
            train_accuracy=round(train_metrics.accuracy, 2),
            test_accuracy=round(test_metrics.accuracy, 2),
            test_picks=test_metrics.picks,
            overfit_gap=round(gap, 2),
            grade=round(grade.grade, 2),
            passed=grade.passed,
        )

        return BacktestResult(
            config=cfg,
            train=train_metrics,
            test=test_metrics,
            overfit_gap=gap,
            grade=grade,
            model=model,
            model_eval=model_eval,
            folds=folds,
            picks=test_picks,
            train_picks=train_picks,
        )

    def _walk_forward(
        self,
        games: list[GameRecord],
        frame: pd.DataFrame,
        store: SnapshotStore,
        elo: EloHistory,
        folds: list[FoldResult],
    ) -> list[GradedPick]:
        """Refit month by month; each month sees only games before it."""
        cfg = self.config
        test_seasons = set(cfg.test_seasons)
        min_train = len(cfg.feature_names) + 1
        picks: list[GradedPick] = []

        for fold in walk_forward_folds(games, min_train_games=min_train):
            month_games = [g for g in fold.test if g.season in test_seasons]
            if not month_games:
                continue

            fold_frame = frame[frame["game_date"] < fold.month]
            try:
                model = fit_market_model(
                    fold_frame,
                    cfg.market,
                    features=cfg.feature_names,
                    ridge_lambda=cfg.ridge_lambda,
                )
            except InsufficientTrainingData as e:
                log.warning("fold_skipped", month=fold.month.isoformat(), rows=e.count)
                continue

            fold_picks = self._evaluate(month_games, games, store, elo, model)
            if cfg.min_fold_picks and len(fold_picks) < cfg.min_fold_picks:
                raise InsufficientTrainingData(len(fold_picks), cfg.min_fold_picks, what="picks")

            wins = sum(1 for p in fold_picks if p.result == PickResult.WIN)
            losses = sum(1 for p in fold_picks if p.result == PickResult.LOSS)
            folds.append(
                FoldResult(
                    month=fold.month,
                    train_rows=model.training_window.rows,
                    picks=len(fold_picks),
                    wins=wins,
                    losses=losses,
                )
            )
            picks.extend(fold_picks)

        return picks

    def _evaluate(
        self,
        targets: list[GameRecord],
        history: list[GameRecord],
        store: SnapshotStore,
        elo: EloHistory,
        model: RegressionModel,
    ) -> list[GradedPick]:
        graded = []
        for game in targets:
            if self.config.strategy == Strategy.CONVERGENCE:
                pick = self._convergence_pick(game, history, store, elo, model)
            else:
                pick = self._model_pick(game, store, model)
            if pick is None:
                continue
            result, actual = grade_game_pick(pick, game)
            if result == PickResult.PENDING:
                continue
            graded.append(GradedPick(pick=pick.with_result(result), actual_value=actual))
        return graded

    def _model_pick(
        self,
        game: GameRecord,
        store: SnapshotStore,
        model: RegressionModel,
    ) -> Pick | None:
        cfg = self.config
        line = game.total if cfg.market == Market.TOTAL else game.spread
        if line is None:
            return None
        features = compute_matchup_features(store, game.home_team, game.away_team, game.game_date)
        if features is None:
            return None

        predicted = model.predict_one({name: features[name] for name in model.feature_names})
        if cfg.market == Market.TOTAL:
            edge = predicted - line
            side = Direction.OVER if edge > 0 else Direction.UNDER
        else:
            edge = predicted + line
            side = Direction.HOME if edge > 0 else Direction.AWAY
        if edge == 0 or abs(edge) < cfg.min_edge:
            return None

        tier = 3
        if self._thresholds.edge is not None:
            tier = edge_tier(edge, self._thresholds.edge)
        if tier == REJECT or tier < cfg.min_tier:
            return None

        return Pick(
            pick_id=make_pick_id(game.game_id, cfg.market, side),
            sport=game.sport,
            game_id=game.game_id,
            game_date=game.game_date,
            home_team=game.home_team,
            away_team=game.away_team,
            market=cfg.market,
            side=side,
            line=line,
            label=_model_label(game, cfg.market, side, line),
            score=0,
            tier=tier,
            edge=abs(edge),
        )

    def _convergence_pick(
        self,
        game: GameRecord,
        history: list[GameRecord],
        store: SnapshotStore,
        elo: EloHistory,
        model: RegressionModel,
    ) -> Pick | None:
        cfg = self.config
        ctx = build_signal_context(
            GameContext.from_record(game),
            history,
            store=store,
            elo=elo,
            totals_model=model if cfg.market == Market.TOTAL else None,
        )
        pick = self._scorer.score_market(ctx, cfg.market)
        if pick is None or pick.tier < cfg.min_tier:
            return None
        if cfg.min_edge and (pick.edge is None or pick.edge < cfg.min_edge):
            return None
        return pick


def run_backtest(
    config: BacktestConfig | Mapping,
    games: list[GameRecord],
    store: SnapshotStore | None = None,
) -> BacktestReport:
    """Convenience function: validate the config, run it, and build the report.

    Args:
        config: BacktestConfig or a plain mapping of its fields
        games: Historical games
        store: Point-in-time rating snapshots

    Returns:
        BacktestReport

    Raises:
        InvalidConfiguration: If a mapping config fails validation
    """
    if not isinstance(config, BacktestConfig):
        config = load_backtest_config(config)
    return generate_report(BacktestEngine(config).run(games, store))


def _model_label(game: GameRecord, market: Market, side: Direction, line: float) -> str:
    if market == Market.TOTAL:
        return f"{'Over' if side == Direction.OVER else 'Under'} {line:g}"
    if side == Direction.HOME:
        return f"{game.home_team} {line:+g}"
    return f"{game.away_team} {-line:+g}"
