"""Season splits, walk-forward folds and regression evaluation.

Walk-forward validation is critical for betting models because:
1. It prevents temporal leakage (using future data to predict past)
2. It simulates real-world model deployment
3. It provides realistic performance estimates

Example:
    >>> train, test = season_split(games, train_seasons=[2022, 2023], test_seasons=[2024])
    >>> for fold in walk_forward_folds(games):
    ...     model = RegressionModel(TOTALS_FEATURES).fit(...)
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from convergence_picks.exceptions import InvalidConfiguration
from convergence_picks.ml.data.schema import GameRecord, Market
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.features.team_features import compute_matchup_features
from convergence_picks.ml.models.regression import RegressionModel

TOTALS_FEATURES = ["sum_oe", "sum_de", "avg_tempo"]
_FRAME_FEATURES = ["sum_oe", "sum_de", "avg_tempo", "tempo_diff", "em_diff"]

DEFAULT_FEATURES = {
    Market.TOTAL: TOTALS_FEATURES,
    Market.SPREAD: ["em_diff"],
}
MARKET_TARGETS = {
    Market.TOTAL: "total_points",
    Market.SPREAD: "home_margin",
}


@dataclass(frozen=True)
class Fold:
    """One walk-forward fold.

    Attributes:
        month: First day of the evaluated month
        train: Games strictly before ``month``
        test: Games within ``month``
    """

    month: date
    train: list[GameRecord]
    test: list[GameRecord]


def season_split(
    games: Iterable[GameRecord],
    train_seasons: Iterable[int],
    test_seasons: Iterable[int],
) -> tuple[list[GameRecord], list[GameRecord]]:
    """Split games into training and held-out seasons.

    Raises:
        ValueError: If a season appears in both lists
    """
    train_set = set(train_seasons)
    test_set = set(test_seasons)
    overlap = train_set & test_set
    if overlap:
        raise ValueError(f"Seasons in both train and test: {sorted(overlap)}")

    ordered = sorted(games, key=lambda g: (g.game_date, g.game_id))
    return (
        [g for g in ordered if g.season in train_set],
        [g for g in ordered if g.season in test_set],
    )


def walk_forward_folds(
    games: Iterable[GameRecord],
    min_train_games: int = 1,
) -> Iterator[Fold]:
    """Monthly walk-forward folds in temporal order.

    Each fold trains on every game before the month and evaluates only that
    month, so the training window expands month by month.

    Args:
        games: Completed games (any order)
        min_train_games: Skip months whose training window is smaller

    Yields:
        Fold per calendar month that has both history and games
    """
    ordered = sorted(games, key=lambda g: (g.game_date, g.game_id))
    months = sorted({date(g.game_date.year, g.game_date.month, 1) for g in ordered})

    for month in months:
        next_month = date(month.year + (month.month == 12), month.month % 12 + 1, 1)
        train = [g for g in ordered if g.game_date < month]
        test = [g for g in ordered if month <= g.game_date < next_month]
        if len(train) < min_train_games or not test:
            continue
        yield Fold(month=month, train=train, test=test)


def build_matchup_frame(games: Iterable[GameRecord], store: SnapshotStore) -> pd.DataFrame:
    """Feature frame for the market models, one row per game.

    Matchup features come from pre-game snapshots; games where either team
    has no snapshot yet get NaN features (dropped at fit time).

    Returns:
        DataFrame with game_id, game_date, season, spread, total, the two
        targets (total_points, home_margin) and the matchup feature columns
    """
    rows = []
    for g in games:
        features = compute_matchup_features(store, g.home_team, g.away_team, g.game_date) or {}
        rows.append(
            {
                "game_id": g.game_id,
                "game_date": g.game_date,
                "season": g.season,
                "spread": g.spread,
                "total": g.total,
                "total_points": g.total_points,
                "home_margin": g.score_difference,
                **{name: features.get(name, np.nan) for name in _FRAME_FEATURES},
            }
        )
    columns = [
        "game_id",
        "game_date",
        "season",
        "spread",
        "total",
        "total_points",
        "home_margin",
        *_FRAME_FEATURES,
    ]
    return pd.DataFrame(rows, columns=columns)


def fit_market_model(
    frame: pd.DataFrame,
    market: Market = Market.TOTAL,
    features: list[str] | None = None,
    ridge_lambda: float = 0.0,
) -> RegressionModel:
    """Fit a RegressionModel for ``market`` on a frame from ``build_matchup_frame``.

    Totals models predict total points; spread models predict the home margin.

    Raises:
        InvalidConfiguration: If the market has no regression target
        InsufficientTrainingData: If too few complete rows remain
    """
    market = Market(market)
    if market not in MARKET_TARGETS:
        raise InvalidConfiguration(f"No regression target for market {market.value}")
    model = RegressionModel(features or DEFAULT_FEATURES[market], ridge_lambda=ridge_lambda)
    return model.fit(frame, frame[MARKET_TARGETS[market]], game_dates=frame["game_date"])


def fit_totals_model(
    frame: pd.DataFrame,
    features: list[str] | None = None,
    ridge_lambda: float = 0.0,
) -> RegressionModel:
    """Fit a totals RegressionModel on a frame from ``build_matchup_frame``."""
    return fit_market_model(frame, Market.TOTAL, features=features, ridge_lambda=ridge_lambda)


def evaluate_regression(
    model: RegressionModel,
    X_test: pd.DataFrame,
    y_test: pd.Series,
) -> dict[str, float]:
    """Evaluate point predictions against actual values.

    Rows with a missing feature or target are skipped.

    Returns:
        Dictionary with mae, rmse, r2 and n
    """
    frame = X_test[model.feature_names].copy()
    frame["__y__"] = np.asarray(y_test, dtype=float)
    frame = frame.dropna()
    if frame.empty:
        return {"mae": float("nan"), "rmse": float("nan"), "r2": float("nan"), "n": 0}

    y_true = frame["__y__"].to_numpy()
    y_pred = model.predict(frame)
    return {
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "r2": float(r2_score(y_true, y_pred)) if len(frame) > 1 else float("nan"),
        "n": len(frame),
    }
