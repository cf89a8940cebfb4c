"""Backtesting framework for validating pick configurations.

Evaluates a candidate (features, ridge λ, weights, tier thresholds) on
held-out seasons, grades it, and sweeps edge tiers to publish new tier
table versions.

Main components:
- BacktestConfig / BacktestEngine / run_backtest: candidate evaluation
- accuracy / roi_at_110 / bootstrap_ci / sharpe_ratio / grade_candidate: metrics
- BacktestReport / generate_report / format_report: human-readable reports
- sweep_edge_tiers / publish_best: tier calibration
"""

from convergence_picks.ml.backtesting.engine import (
    BacktestConfig,
    BacktestEngine,
    BacktestResult,
    FoldResult,
    Strategy,
    load_backtest_config,
    run_backtest,
)
from convergence_picks.ml.backtesting.metrics import (
    CandidateGrade,
    GradeGate,
    SplitMetrics,
    accuracy,
    bootstrap_ci,
    grade_candidate,
    overfit_gap,
    pick_returns,
    roi_at_110,
    sharpe_ratio,
    summarize_picks,
)
from convergence_picks.ml.backtesting.report import (
    BacktestReport,
    format_report,
    generate_report,
)
from convergence_picks.ml.backtesting.sweep import (
    SweepResult,
    edge_grid,
    publish_best,
    sweep_edge_tiers,
)

__all__ = [
    # Metrics
    "accuracy",
    "roi_at_110",
    "pick_returns",
    "bootstrap_ci",
    "sharpe_ratio",
    "overfit_gap",
    "GradeGate",
    "CandidateGrade",
    "grade_candidate",
    "SplitMetrics",
    "summarize_picks",
    # Engine
    "Strategy",
    "BacktestConfig",
    "load_backtest_config",
    "BacktestEngine",
    "BacktestResult",
    "FoldResult",
    "run_backtest",
    # Report
    "BacktestReport",
    "generate_report",
    "format_report",
    # Sweep
    "SweepResult",
    "edge_grid",
    "sweep_edge_tiers",
    "publish_best",
]
