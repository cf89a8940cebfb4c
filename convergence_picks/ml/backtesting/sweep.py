"""Edge-tier sweep: search (t3, t4, t5, λ) and publish the winner.

Every candidate is an independent backtest, so candidates run on a thread
pool; each candidate's own walk-forward folds still run in temporal order.
The winning thresholds are published as a NEW tier table version. Existing
versions are never edited.

Example:
    >>> results = sweep_edge_tiers(base_config, games, store,
    ...                            edges=[2, 4, 6, 8], lambdas=[0, 10, 100])
    >>> table = publish_best(results, version="ncaamb-ou-2025-03")
"""

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from itertools import combinations_with_replacement

from convergence_picks.config import get_settings
from convergence_picks.exceptions import InsufficientTrainingData
from convergence_picks.ml.backtesting.engine import BacktestConfig, BacktestEngine, BacktestResult
from convergence_picks.ml.data.schema import GameRecord
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.monitoring import get_logger
from convergence_picks.scoring.tiers import (
    TIER_REGISTRY,
    EdgeTierThresholds,
    TierRegistry,
    TierTable,
    TierThresholds,
    make_tier_table,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """One evaluated grid point.

    Attributes:
        edge: Edge thresholds evaluated
        ridge_lambda: Ridge penalty evaluated
        result: Full backtest result (None when the candidate could not be fit)
    """

    edge: EdgeTierThresholds
    ridge_lambda: float
    result: BacktestResult | None

    @property
    def grade(self) -> float:
        return self.result.grade.grade if self.result is not None else 0.0

    @property
    def passed(self) -> bool:
        return self.result is not None and self.result.grade.passed


def edge_grid(edges: Iterable[float]) -> list[EdgeTierThresholds]:
    """Every non-decreasing (t3, t4, t5) triple drawn from ``edges``."""
    values = sorted(set(edges))
    return [EdgeTierThresholds(t3=a, t4=b, t5=c) for a, b, c in combinations_with_replacement(values, 3)]


def sweep_edge_tiers(
    base: BacktestConfig,
    games: list[GameRecord],
    store: SnapshotStore | None = None,
    edges: Iterable[float] = (2.0, 4.0, 6.0, 8.0),
    lambdas: Iterable[float] = (0.0, 10.0, 100.0),
    max_workers: int | None = None,
) -> list[SweepResult]:
    """Evaluate every (edge thresholds, λ) combination.

    Args:
        base: Configuration supplying sport, market, seasons and gates
        games: Historical games
        store: Point-in-time rating snapshots
        edges: Candidate threshold values; triples are drawn from them
        lambdas: Candidate ridge penalties
        max_workers: Thread pool size (settings default when None)

    Returns:
        Results ranked by grade, then held-out accuracy, then pick count
    """
    grid = [(edge, lam) for edge in edge_grid(edges) for lam in sorted(set(lambdas))]
    workers = max_workers or get_settings().max_workers
    log.info("sweep_started", candidates=len(grid), workers=workers)

    def evaluate(point: tuple[EdgeTierThresholds, float]) -> SweepResult:
        edge, lam = point
        config = base.model_copy(
            update={
                "tiers": TierThresholds(
                    score_t3=base.tiers.score_t3,
                    score_t4=base.tiers.score_t4,
                    score_t5=base.tiers.score_t5,
                    edge=edge,
                ),
                "ridge_lambda": lam,
            }
        )
        try:
            result = BacktestEngine(config).run(games, store)
        except InsufficientTrainingData as e:
            log.warning("sweep_candidate_skipped", ridge_lambda=lam, rows=e.count)
            result = None
        return SweepResult(edge=edge, ridge_lambda=lam, result=result)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(evaluate, grid))

    results.sort(key=_rank_key)
    best = results[0] if results else None
    log.info(
        "sweep_complete",
        candidates=len(results),
        passing=sum(1 for r in results if r.passed),
        best_grade=round(best.grade, 2) if best else None,
    )
    return results


def _rank_key(r: SweepResult) -> tuple:
    if r.result is None:
        return (1, 0.0, 0.0, 0, r.edge.t3, r.edge.t4, r.edge.t5, r.ridge_lambda)
    return (
        0,
        -r.grade,
        -r.result.test.accuracy,
        -r.result.test.picks,
        r.edge.t3,
        r.edge.t4,
        r.edge.t5,
        r.ridge_lambda,
    )


def publish_best(
    results: list[SweepResult],
    version: str,
    registry: TierRegistry = TIER_REGISTRY,
    created: date | None = None,
) -> TierTable | None:
    """Register the best passing candidate as a new tier table version.

    The new table starts from the registry's latest table and overrides only
    the swept (sport, market).

    Returns:
        The registered TierTable, or None when no candidate passed its gates

    Raises:
        InvalidConfiguration: If ``version`` is already registered
    """
    passing = [r for r in results if r.passed]
    if not passing:
        log.warning("sweep_nothing_to_publish", candidates=len(results))
        return None

    best = min(passing, key=_rank_key)
    cfg = best.result.config
    latest = registry.get()

    overrides = {key: t.model_dump() for key, t in latest.overrides.items()}
    overrides[(cfg.sport, cfg.market)] = cfg.tiers.model_dump()

    table = make_tier_table(
        version=version,
        created=created or date.today(),
        source=(
            f"sweep {cfg.sport.value}/{cfg.market.value} "
            f"train={cfg.train_seasons} test={cfg.test_seasons} "
            f"λ={best.ridge_lambda:g} grade={best.grade:.1f}"
        ),
        default=latest.default.model_dump(),
        overrides=overrides,
    )
    registry.register(table)
    log.info("tier_table_published", version=version, grade=round(best.grade, 2))
    return table
