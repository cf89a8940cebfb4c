"""Tests for backtesting metrics, the engine, reports and the tier sweep.

The engine tests use ``totals_backtest_data``: totals are an exact linear
function of sum_oe and every line is 5 points off, so a correctly fit
model wins every held-out pick with a 5-point edge.
``noisy_backtest_inputs`` adds residual noise, lines inside the error band
and a push, so accuracy and ROI must match hand-computed values.
"""

from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from convergence_picks.exceptions import InsufficientTrainingData, InvalidConfiguration
from convergence_picks.ml.backtesting import (
    BacktestConfig,
    BacktestEngine,
    GradeGate,
    accuracy,
    bootstrap_ci,
    edge_grid,
    format_report,
    generate_report,
    grade_candidate,
    load_backtest_config,
    overfit_gap,
    pick_returns,
    publish_best,
    roi_at_110,
    run_backtest,
    sharpe_ratio,
    summarize_picks,
    sweep_edge_tiers,
)
from convergence_picks.ml.data.schema import Market, Sport
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.training.validation import fit_market_model
from convergence_picks.picks.models import GradedPick, PickResult
from convergence_picks.scoring.tiers import BASELINE_TIERS, TierRegistry
from convergence_picks.signals.base import Direction


@pytest.fixture
def backtest_inputs(totals_backtest_data):
    games, snapshots = totals_backtest_data
    return games, SnapshotStore(snapshots)


@pytest.fixture
def noisy_backtest_inputs(make_game, make_snapshot):
    """Twenty NCAAMB games with residual noise and lines inside the error band.

    Training totals are ``2 × sum_oe − 260`` plus noise of ±3 that is
    orthogonal to sum_oe, so OLS still recovers the exact line. Held-out
    lines sit 1-6 points off the prediction and the actual totals wander
    around them: 5 wins, 4 losses and one push on the line.
    """
    train_noise = (3, -3, -3, 3, 0, 0, 3, -3, -3, 3)
    # (model edge over the line, actual total minus the line)
    held_out = ((4, 6), (-4, -2), (3, -5), (-5, 0), (1, -3), (-1, 2), (6, 1), (-3, -4), (2, 3), (-2, 1))

    games = []
    snapshots = []
    for i in range(20):
        season = 2023 if i < 10 else 2024
        k = i % 10
        day = date(season, 1, 3 + k)
        home, away = f"NoisyHome{i}", f"NoisyAway{i}"
        if season == 2023:
            team_oe = 100.0 + k
            predicted = 140 + 4 * k
            line = predicted - 5 if k % 2 == 0 else predicted + 5
            total = predicted + train_noise[k]
        else:
            team_oe = 100.5 + k
            predicted = 142 + 4 * k
            edge, miss = held_out[k]
            line = predicted - edge
            total = line + miss
        home_score = total // 2 + 3
        games.append(
            make_game(
                game_id=f"n{i:02d}",
                game_date=day,
                home_team=home,
                away_team=away,
                home_score=home_score,
                away_score=total - home_score,
                season=season,
                total=float(line),
            )
        )
        as_of = day - timedelta(days=2)
        snapshots.append(make_snapshot(home, as_of, adj_oe=team_oe, adj_de=100.0, adj_tempo=68.0))
        snapshots.append(make_snapshot(away, as_of, adj_oe=team_oe, adj_de=100.0, adj_tempo=68.0))
    return games, SnapshotStore(snapshots)


@pytest.fixture
def base_config():
    def _make(**overrides) -> BacktestConfig:
        fields = {
            "sport": Sport.NCAAMB,
            "market": Market.TOTAL,
            "train_seasons": [2023],
            "test_seasons": [2024],
            "features": ["sum_oe"],
            "bootstrap_iterations": 200,
            "gate": GradeGate(min_picks=5),
        }
        fields.update(overrides)
        return BacktestConfig(**fields)

    return _make


# ============================================================================
# Metrics
# ============================================================================


class TestMetrics:
    def test_accuracy_excludes_pushes(self):
        assert accuracy(60, 40) == 60.0
        assert accuracy(0, 0) == 0.0

    def test_roi_at_110(self):
        assert roi_at_110(55, 45) == pytest.approx(5.0)
        # 52.38% is break-even at -110
        assert roi_at_110(11, 10) == pytest.approx(0.0, abs=1e-9)
        assert roi_at_110(0, 0) == 0.0

    def test_pick_returns(self):
        returns = pick_returns([PickResult.WIN, PickResult.LOSS, PickResult.PUSH, PickResult.PENDING])
        assert returns.tolist() == pytest.approx([100 / 110, -1.0, 0.0])

    def test_sharpe_ratio(self):
        assert sharpe_ratio([1.0]) == 0.0
        assert sharpe_ratio([0.5, 0.5, 0.5]) == 0.0
        values = np.array([1.0, -1.0, 1.0, 1.0])
        assert sharpe_ratio(values) == pytest.approx(values.mean() / values.std(ddof=1))

    def test_bootstrap_ci_is_reproducible(self):
        results = [PickResult.WIN] * 30 + [PickResult.LOSS] * 20
        first = bootstrap_ci(results, iterations=500, seed=7)
        second = bootstrap_ci(results, iterations=500, seed=7)

        assert first == second
        assert first[0] < 60.0 < first[1]

    def test_bootstrap_ci_empty(self):
        assert bootstrap_ci([PickResult.PUSH]) == (0.0, 0.0)

    def test_overfit_gap(self):
        assert overfit_gap(64.0, 58.5) == pytest.approx(5.5)

    def test_grade_blends_sub_scores(self):
        grade = grade_candidate(62.0, 2.0, 15.0, 600)
        assert grade.passed
        assert grade.grade == pytest.approx(49.9167, abs=1e-3)

    def test_grade_caps_each_sub_score(self):
        assert grade_candidate(90.0, 0.0, 80.0, 5000).grade == pytest.approx(100.0)

    @pytest.mark.parametrize(
        "acc,gap,n,message",
        [
            (54.0, 2.0, 600, "accuracy"),
            (62.0, 9.0, 600, "overfit gap"),
            (62.0, 2.0, 50, "picks below floor"),
        ],
    )
    def test_gates_zero_the_grade(self, acc, gap, n, message):
        grade = grade_candidate(acc, gap, 10.0, n)
        assert grade.grade == 0.0
        assert not grade.passed
        assert any(message in f for f in grade.failures)

    def test_summarize_picks(self, make_pick):
        graded = [
            GradedPick(make_pick(game_id="a", tier=5).with_result(PickResult.WIN), 4),
            GradedPick(make_pick(game_id="b", tier=5).with_result(PickResult.LOSS), -2),
            GradedPick(make_pick(game_id="c", tier=3).with_result(PickResult.PUSH), 0),
            GradedPick(
                make_pick(game_id="d", tier=3, game_date=date(2025, 2, 1)).with_result(PickResult.WIN),
                7,
            ),
        ]

        metrics = summarize_picks(graded, iterations=100)

        assert (metrics.picks, metrics.wins, metrics.losses, metrics.pushes) == (4, 2, 1, 1)
        assert metrics.accuracy == pytest.approx(200 / 3)
        assert metrics.by_tier[5]["accuracy"] == 50.0
        assert metrics.by_tier[3]["picks"] == 2
        assert [m["month"] for m in metrics.monthly] == ["2025-01", "2025-02"]

    def test_summarize_nothing(self):
        metrics = summarize_picks([])
        assert metrics.picks == 0
        assert metrics.accuracy == 0.0


# ============================================================================
# Configuration
# ============================================================================


class TestBacktestConfig:
    def test_defaults_follow_market(self):
        config = BacktestConfig(sport=Sport.NCAAMB, train_seasons=[2023], test_seasons=[2024])
        assert config.feature_names == ["sum_oe", "sum_de", "avg_tempo"]
        spread = config.model_copy(update={"market": Market.SPREAD, "features": None})
        assert spread.feature_names == ["em_diff"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"train_seasons": [2023, 2024], "test_seasons": [2024]},
            {"train_seasons": [2024], "test_seasons": [2023]},
            {"train_seasons": [], "test_seasons": [2024]},
            {"market": "PROP"},
            {"ridge_lambda": -1.0},
            {"min_tier": 2},
        ],
    )
    def test_invalid_configs(self, overrides):
        data = {"sport": "NCAAMB", "train_seasons": [2023], "test_seasons": [2024], **overrides}
        with pytest.raises(InvalidConfiguration, match="Invalid backtest config"):
            load_backtest_config(data)

    def test_load_from_mapping(self):
        config = load_backtest_config(
            {"sport": "NFL", "market": "SPREAD", "train_seasons": [2021, 2022], "test_seasons": [2023]}
        )
        assert config.sport == Sport.NFL
        assert config.market == Market.SPREAD


# ============================================================================
# Engine
# ============================================================================


class TestModelStrategy:
    def test_exact_model_wins_every_held_out_pick(self, backtest_inputs, base_config):
        games, store = backtest_inputs

        result = BacktestEngine(base_config()).run(games, store)

        assert result.test.picks == 10
        assert result.test.accuracy == 100.0
        assert result.train.accuracy == 100.0
        assert result.overfit_gap == 0.0
        assert result.grade.passed
        # 40 (accuracy) + 25 (gap) + 20 (roi) + 0 (volume)
        assert result.grade.grade == pytest.approx(85.0)
        assert result.model.coefficients == pytest.approx((2.0,))
        assert result.model.intercept == pytest.approx(-260.0)
        assert result.model_eval["mae"] == pytest.approx(0.0, abs=1e-6)

    def test_picks_alternate_over_and_under(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        result = BacktestEngine(base_config()).run(games, store)

        sides = {g.pick.game_id: g.pick.side for g in result.picks}
        assert sides["t10"] == Direction.OVER
        assert sides["t11"] == Direction.UNDER
        assert all(g.pick.edge == pytest.approx(5.0) for g in result.picks)
        assert all(g.pick.score == 0 for g in result.picks)

    def test_min_edge_filters_everything(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        result = BacktestEngine(base_config(min_edge=6.0)).run(games, store)

        assert result.test.picks == 0
        assert not result.grade.passed

    def test_held_out_games_never_train_the_model(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        result = BacktestEngine(base_config()).run(games, store)

        window = result.model.training_window
        assert window.rows == 10
        assert window.end < date(2024, 1, 1)

    def test_training_seasons_without_data(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        config = base_config(train_seasons=[2020], test_seasons=[2024])
        with pytest.raises(InsufficientTrainingData):
            BacktestEngine(config).run(games, store)


class TestNoisyHoldout:
    def test_training_noise_does_not_bias_the_fit(self, noisy_backtest_inputs, base_config):
        games, store = noisy_backtest_inputs

        result = BacktestEngine(base_config()).run(games, store)

        assert result.model.coefficients == pytest.approx((2.0,))
        assert result.model.intercept == pytest.approx(-260.0)
        assert result.train.accuracy == 100.0

    def test_hand_computed_held_out_results(self, noisy_backtest_inputs, base_config):
        games, store = noisy_backtest_inputs

        result = BacktestEngine(base_config()).run(games, store)

        test = result.test
        assert test.picks == 10
        assert (test.wins, test.losses, test.pushes) == (5, 4, 1)
        assert test.accuracy == pytest.approx(500 / 9)
        # (5 × 100/110 − 4) / 9 decided
        assert test.roi_pct == pytest.approx(6.0606, abs=1e-3)

    def test_push_on_the_line(self, noisy_backtest_inputs, base_config):
        games, store = noisy_backtest_inputs

        result = BacktestEngine(base_config()).run(games, store)

        by_game = {g.pick.game_id: g for g in result.picks}
        push = by_game["n13"]
        assert push.result == PickResult.PUSH
        assert push.pick.side == Direction.UNDER
        assert push.pick.edge == pytest.approx(5.0)
        assert push.actual_value == push.pick.line == 159.0

    def test_min_edge_keeps_only_wide_edges(self, noisy_backtest_inputs, base_config):
        games, store = noisy_backtest_inputs

        result = BacktestEngine(base_config(min_edge=2.5)).run(games, store)

        test = result.test
        assert sorted(g.pick.game_id for g in result.picks) == ["n10", "n11", "n12", "n13", "n16", "n17"]
        assert (test.picks, test.wins, test.losses, test.pushes) == (6, 4, 1, 1)
        assert test.accuracy == pytest.approx(80.0)
        # (4 × 100/110 − 1) / 5 decided
        assert test.roi_pct == pytest.approx(52.7273, abs=1e-3)


class TestWalkForward:
    def test_one_fold_per_test_month(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        result = BacktestEngine(base_config(walk_forward=True)).run(games, store)

        assert len(result.folds) == 1
        fold = result.folds[0]
        assert fold.month == date(2024, 1, 1)
        assert fold.train_rows == 10
        assert (fold.picks, fold.wins, fold.losses) == (10, 10, 0)
        assert result.test.picks == 10

    def test_thin_fold_raises(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        config = base_config(walk_forward=True, min_fold_picks=11)
        with pytest.raises(InsufficientTrainingData, match="picks"):
            BacktestEngine(config).run(games, store)


class TestConvergenceStrategy:
    def test_model_edge_alone_reaches_tier_three(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        config = base_config(strategy="convergence", min_active=1)

        result = BacktestEngine(config).run(games, store)

        assert result.test.picks == 10
        assert result.test.accuracy == 100.0
        # One weak signal: 50 + 80 × (0.4 × 2.5 × 0.7) / 10
        assert {g.pick.score for g in result.picks} == {56}
        assert {g.pick.tier for g in result.picks} == {3}

    def test_default_min_active_yields_nothing(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        result = BacktestEngine(base_config(strategy="convergence")).run(games, store)
        assert result.test.picks == 0


class TestFitMarketModel:
    def test_spread_model_predicts_home_margin(self):
        em_diff = np.arange(-10.0, 10.0, 2.0)
        frame = pd.DataFrame(
            {
                "em_diff": em_diff,
                "home_margin": 0.8 * em_diff + 3.0,
                "game_date": [date(2024, 1, 1 + i) for i in range(len(em_diff))],
            }
        )

        model = fit_market_model(frame, Market.SPREAD)

        assert model.feature_names == ["em_diff"]
        assert model.coefficients == pytest.approx((0.8,))
        assert model.intercept == pytest.approx(3.0)
        assert model.training_window.start == date(2024, 1, 1)

    def test_props_have_no_regression_target(self):
        with pytest.raises(InvalidConfiguration):
            fit_market_model(pd.DataFrame(), Market.PROP)


# ============================================================================
# Reports
# ============================================================================


class TestReport:
    def test_report_summary_and_format(self, backtest_inputs, base_config):
        games, store = backtest_inputs

        report = run_backtest(base_config(), games, store)
        text = format_report(report)

        assert report.passed
        assert report.grade == pytest.approx(85.0)
        assert "NCAAMB TOTAL backtest over 2024" in report.summary
        assert "PASS" in report.summary
        assert "=== Backtest Report ===" in text
        assert "sum_oe" in text

    def test_rejected_report_explains_failures(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        report = generate_report(
            BacktestEngine(base_config(gate=GradeGate(min_picks=500))).run(games, store)
        )

        assert not report.passed
        assert "REJECTED" in report.summary
        assert any(r.startswith("Rejected:") for r in report.recommendations)


# ============================================================================
# Sweep
# ============================================================================


class TestSweep:
    def test_edge_grid_is_non_decreasing(self):
        grid = edge_grid([6, 2, 4])
        assert len(grid) == 10
        assert all(t.t3 <= t.t4 <= t.t5 for t in grid)

    def test_sweep_ranks_and_publishes(self, backtest_inputs, base_config):
        games, store = backtest_inputs

        results = sweep_edge_tiers(
            base_config(), games, store, edges=[2, 4, 6], lambdas=[0], max_workers=2
        )

        assert len(results) == 10
        best = results[0]
        assert (best.edge.t3, best.edge.t4, best.edge.t5) == (2, 2, 2)
        assert best.passed
        # No pick clears a 6-point edge, so that candidate fails its gates
        assert not results[-1].passed

        registry = TierRegistry([BASELINE_TIERS])
        table = publish_best(results, "sweep-test", registry=registry, created=date(2025, 3, 2))

        assert registry.get() is table
        thresholds = table.thresholds_for(Sport.NCAAMB, Market.TOTAL)
        assert thresholds.edge.t3 == 2
        assert table.thresholds_for(Sport.NCAAMB, Market.SPREAD).edge is None
        assert "sweep NCAAMB/TOTAL" in table.source

        with pytest.raises(InvalidConfiguration, match="already registered"):
            publish_best(results, "sweep-test", registry=registry)

    def test_nothing_passing_publishes_nothing(self, backtest_inputs, base_config):
        games, store = backtest_inputs
        results = sweep_edge_tiers(
            base_config(gate=GradeGate(min_picks=500)),
            games,
            store,
            edges=[2],
            lambdas=[0],
            max_workers=1,
        )
        registry = TierRegistry([BASELINE_TIERS])

        assert publish_best(results, "never", registry=registry) is None
        assert registry.versions == ["baseline-1"]
