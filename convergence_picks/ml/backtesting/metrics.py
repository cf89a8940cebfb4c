"""Performance metrics for backtesting pick configurations.

Provides calculations for:
- Accuracy (pushes excluded from the denominator)
- ROI at standard -110 pricing
- Bootstrap confidence intervals
- Sharpe-like ratio of per-pick returns
- Overfitting gap and the candidate grade used to rank configurations
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np
from pydantic import BaseModel, Field

from convergence_picks.picks.models import GradedPick, PickResult

# Profit per unit staked on a win at -110
WIN_RETURN_AT_110 = 100 / 110


def accuracy(wins: int, losses: int) -> float:
    """Win percentage over decided picks.

    Returns:
        ``wins / (wins + losses) × 100``; 0.0 when nothing was decided

    Example:
        >>> accuracy(60, 40)
        60.0
    """
    decided = wins + losses
    if decided == 0:
        return 0.0
    return wins / decided * 100


def roi_at_110(wins: int, losses: int) -> float:
    """ROI percentage betting every decided pick at -110.

    Formula: ``(wins × 100/110 − losses) / decided × 100``

    Example:
        >>> round(roi_at_110(55, 45), 2)
        5.0
    """
    decided = wins + losses
    if decided == 0:
        return 0.0
    return (wins * WIN_RETURN_AT_110 - losses) / decided * 100


def pick_returns(results: Sequence[PickResult]) -> np.ndarray:
    """Per-pick unit returns: +100/110 for a win, -1 for a loss, 0 for a push."""
    values = {
        PickResult.WIN: WIN_RETURN_AT_110,
        PickResult.LOSS: -1.0,
        PickResult.PUSH: 0.0,
    }
    return np.array([values[r] for r in results if r in values], dtype=float)


def sharpe_ratio(returns: Sequence[float] | np.ndarray) -> float:
    """Mean per-pick return divided by its sample standard deviation.

    Returns 0.0 for fewer than two returns or zero variance.
    """
    arr = np.asarray(returns, dtype=float)
    if len(arr) < 2:
        return 0.0
    std = float(np.std(arr, ddof=1))
    if std == 0:
        return 0.0
    return float(np.mean(arr) / std)


def bootstrap_ci(
    results: Sequence[PickResult],
    statistic: Callable[[int, int], float] = accuracy,
    iterations: int = 1000,
    seed: int = 42,
) -> tuple[float, float]:
    """Percentile bootstrap interval for a (wins, losses) statistic.

    Decided picks are resampled with replacement ``iterations`` times and
    the statistic is recomputed on each resample.

    Args:
        results: Pick results (pushes are ignored)
        statistic: Function of (wins, losses), e.g. ``accuracy`` or ``roi_at_110``
        iterations: Number of resamples
        seed: RNG seed, so intervals are reproducible

    Returns:
        (2.5th percentile, 97.5th percentile); (0.0, 0.0) with no decided picks
    """
    outcomes = np.array(
        [1 if r == PickResult.WIN else 0 for r in results if r in (PickResult.WIN, PickResult.LOSS)]
    )
    n = len(outcomes)
    if n == 0:
        return 0.0, 0.0

    rng = np.random.default_rng(seed)
    samples = rng.integers(0, n, size=(iterations, n))
    wins = outcomes[samples].sum(axis=1)
    stats = np.array([statistic(int(w), n - int(w)) for w in wins])
    low, high = np.percentile(stats, [2.5, 97.5])
    return float(low), float(high)


def overfit_gap(train_accuracy: float, test_accuracy: float) -> float:
    """In-sample minus held-out accuracy, in percentage points."""
    return train_accuracy - test_accuracy


class GradeGate(BaseModel):
    """Floors and ceilings a candidate must clear to be graded at all."""

    min_accuracy: float = Field(default=55.0, ge=0, le=100)
    max_gap: float = Field(default=8.0, ge=0)
    min_picks: int = Field(default=100, ge=0)


@dataclass(frozen=True)
class CandidateGrade:
    """Grade of one configuration.

    Attributes:
        grade: Weighted grade 0-100 (0 when a gate failed)
        passed: Whether every gate was cleared
        failures: Human-readable gate failures
    """

    grade: float
    passed: bool
    failures: tuple[str, ...] = ()


def _sub_score(value: float) -> float:
    return max(0.0, min(100.0, value * 100))


def grade_candidate(
    test_accuracy: float,
    gap: float,
    roi: float,
    n_picks: int,
    gate: GradeGate | None = None,
) -> CandidateGrade:
    """Grade a configuration from its held-out results.

    A candidate below the accuracy floor, above the gap ceiling, or under
    the sample floor is graded 0. Otherwise the grade blends four
    sub-scores, each clamped to 0-100:

    - accuracy ``(acc − 55) / 15`` (weight 0.40)
    - gap ``(8 − gap) / 8`` (weight 0.25)
    - ROI ``roi / 40`` (weight 0.20)
    - volume ``(n − 200) / 1200`` (weight 0.15)

    Example:
        >>> grade_candidate(62.0, 2.0, 15.0, 600).grade
        49.9...
    """
    gate = gate or GradeGate()
    failures = []
    if test_accuracy < gate.min_accuracy:
        failures.append(f"accuracy {test_accuracy:.1f}% below {gate.min_accuracy:.1f}%")
    if gap > gate.max_gap:
        failures.append(f"overfit gap {gap:.1f} pts above {gate.max_gap:.1f}")
    if n_picks < gate.min_picks:
        failures.append(f"{n_picks} picks below floor of {gate.min_picks}")
    if failures:
        return CandidateGrade(grade=0.0, passed=False, failures=tuple(failures))

    grade = (
        0.40 * _sub_score((test_accuracy - 55) / 15)
        + 0.25 * _sub_score((8 - gap) / 8)
        + 0.20 * _sub_score(roi / 40)
        + 0.15 * _sub_score((n_picks - 200) / 1200)
    )
    return CandidateGrade(grade=grade, passed=True)


@dataclass
class SplitMetrics:
    """Aggregated results of the graded picks on one split.

    Attributes:
        picks: Number of graded picks
        wins / losses / pushes: Result counts
        accuracy: Win percentage over decided picks
        roi_pct: ROI percentage at -110
        accuracy_ci: 95% bootstrap interval for accuracy
        roi_ci: 95% bootstrap interval for ROI
        sharpe: Mean per-pick return over its standard deviation
        by_tier: Per-tier picks / wins / losses / accuracy
        monthly: Per-month picks / wins / losses / accuracy / roi
    """

    picks: int
    wins: int
    losses: int
    pushes: int
    accuracy: float
    roi_pct: float
    accuracy_ci: tuple[float, float] = (0.0, 0.0)
    roi_ci: tuple[float, float] = (0.0, 0.0)
    sharpe: float = 0.0
    by_tier: dict[int, dict] = field(default_factory=dict)
    monthly: list[dict] = field(default_factory=list)


def _counts(results: Sequence[PickResult]) -> tuple[int, int, int]:
    wins = sum(1 for r in results if r == PickResult.WIN)
    losses = sum(1 for r in results if r == PickResult.LOSS)
    pushes = sum(1 for r in results if r == PickResult.PUSH)
    return wins, losses, pushes


def summarize_picks(
    graded: Sequence[GradedPick],
    iterations: int = 1000,
    seed: int = 42,
) -> SplitMetrics:
    """Aggregate graded picks into SplitMetrics.

    Args:
        graded: Graded picks of one split
        iterations: Bootstrap resamples
        seed: Bootstrap RNG seed

    Returns:
        SplitMetrics (all zeros when ``graded`` is empty)
    """
    results = [g.result for g in graded]
    wins, losses, pushes = _counts(results)

    by_tier: dict[int, dict] = {}
    for tier in sorted({g.pick.tier for g in graded}):
        won, lost, pushed = _counts([g.result for g in graded if g.pick.tier == tier])
        by_tier[tier] = {
            "picks": won + lost + pushed,
            "wins": won,
            "losses": lost,
            "accuracy": accuracy(won, lost),
        }

    months: dict[str, list[PickResult]] = {}
    for g in graded:
        months.setdefault(g.pick.game_date.strftime("%Y-%m"), []).append(g.result)
    monthly = []
    for month in sorted(months):
        won, lost, pushed = _counts(months[month])
        monthly.append(
            {
                "month": month,
                "picks": won + lost + pushed,
                "wins": won,
                "losses": lost,
                "accuracy": accuracy(won, lost),
                "roi": roi_at_110(won, lost),
            }
        )

    return SplitMetrics(
        picks=len(results),
        wins=wins,
        losses=losses,
        pushes=pushes,
        accuracy=accuracy(wins, losses),
        roi_pct=roi_at_110(wins, losses),
        accuracy_ci=bootstrap_ci(results, accuracy, iterations=iterations, seed=seed),
        roi_ci=bootstrap_ci(results, roi_at_110, iterations=iterations, seed=seed),
        sharpe=sharpe_ratio(pick_returns(results)),
        by_tier=by_tier,
        monthly=monthly,
    )
