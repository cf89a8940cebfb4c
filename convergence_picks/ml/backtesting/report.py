"""Human-readable backtest report generation.

Provides formatted output for backtest results using Rich
for terminal display.
"""

from dataclasses import dataclass, field
from io import StringIO
from typing import TYPE_CHECKING

import numpy as np
from rich.console import Console
from rich.table import Table

from convergence_picks.ml.backtesting.metrics import SplitMetrics

if TYPE_CHECKING:
    from convergence_picks.ml.backtesting.engine import BacktestResult


@dataclass
class BacktestReport:
    """Human-readable backtest report.

    Attributes:
        summary: Brief summary of results
        result: Full backtest result
        recommendations: Actionable insights
    """

    summary: str
    result: "BacktestResult"
    recommendations: list[str] = field(default_factory=list)

    @property
    def grade(self) -> float:
        return self.result.grade.grade

    @property
    def passed(self) -> bool:
        return self.result.grade.passed


def generate_report(result: "BacktestResult") -> BacktestReport:
    """Generate a human-readable report from backtest results.

    Args:
        result: BacktestResult from running a backtest

    Returns:
        BacktestReport with formatted analysis
    """
    cfg = result.config
    test = result.test
    seasons = ", ".join(str(s) for s in cfg.test_seasons)
    status = "PASS" if result.grade.passed else "REJECTED"

    summary = (
        f"{cfg.sport.value} {cfg.market.value} backtest over {seasons}: "
        f"{test.picks} picks, accuracy {test.accuracy:.1f}% "
        f"(95% CI {test.accuracy_ci[0]:.1f}-{test.accuracy_ci[1]:.1f}), "
        f"ROI {test.roi_pct:+.2f}%, overfit gap {result.overfit_gap:+.1f} pts. "
        f"Grade {result.grade.grade:.1f} ({status})"
    )

    return BacktestReport(
        summary=summary,
        result=result,
        recommendations=_generate_recommendations(result),
    )


def format_report(report: BacktestReport) -> str:
    """Format a backtest report for terminal display.

    Uses Rich for table formatting and colors.

    Args:
        report: BacktestReport to format

    Returns:
        Formatted string for terminal output
    """
    buffer = StringIO()
    console = Console(file=buffer, force_terminal=True, width=100)
    result = report.result

    console.print("\n[bold blue]=== Backtest Report ===[/bold blue]\n")
    console.print(f"[white]{report.summary}[/white]\n")

    # Train vs held-out
    splits = Table(title="Train vs Held-out", show_header=True)
    splits.add_column("Metric", style="cyan")
    splits.add_column("Train", justify="right")
    splits.add_column("Held-out", justify="right")
    for label, fmt in _split_rows():
        splits.add_row(label, fmt(result.train), fmt(result.test))
    console.print(splits)

    gate_table = Table(title="Gates", show_header=True)
    gate_table.add_column("Check", style="cyan")
    gate_table.add_column("Value", justify="right")
    gate_table.add_column("Status", justify="center")
    gate = result.config.gate
    gate_table.add_row(
        "Held-out accuracy",
        f"{result.test.accuracy:.1f}%",
        _status(result.test.accuracy >= gate.min_accuracy),
    )
    gate_table.add_row(
        "Overfit gap",
        f"{result.overfit_gap:+.1f} pts",
        _status(result.overfit_gap <= gate.max_gap),
    )
    gate_table.add_row(
        "Sample size",
        str(result.test.picks),
        _status(result.test.picks >= gate.min_picks),
    )
    gate_table.add_row("Grade", f"{result.grade.grade:.1f}", _status(result.grade.passed))
    console.print(gate_table)

    if result.model is not None and result.model.is_fitted:
        console.print("\n[bold blue]=== Model ===[/bold blue]\n")
        coef_table = Table(show_header=True)
        coef_table.add_column("Feature", style="cyan")
        coef_table.add_column("Coefficient", justify="right")
        coef_table.add_row("(intercept)", f"{result.model.intercept:.4f}")
        for name, coef in zip(result.model.feature_names, result.model.coefficients):
            coef_table.add_row(name, f"{coef:.4f}")
        console.print(coef_table)
        if result.model_eval.get("n"):
            ev = result.model_eval
            console.print(
                f"Held-out MAE {ev['mae']:.2f}, RMSE {ev['rmse']:.2f}, "
                f"R² {ev['r2']:.3f} over {ev['n']} games"
            )

    if result.test.by_tier:
        console.print("\n[bold blue]=== By Tier ===[/bold blue]\n")
        tier_table = Table(show_header=True)
        tier_table.add_column("Tier", style="cyan")
        tier_table.add_column("Picks", justify="right")
        tier_table.add_column("W-L", justify="right")
        tier_table.add_column("Accuracy", justify="right")
        for tier, row in sorted(result.test.by_tier.items(), reverse=True):
            tier_table.add_row(
                f"{tier}★",
                str(row["picks"]),
                f"{row['wins']}-{row['losses']}",
                f"{row['accuracy']:.1f}%",
            )
        console.print(tier_table)

    if result.test.monthly:
        console.print("\n[bold blue]=== Monthly Breakdown ===[/bold blue]\n")
        monthly_table = Table(show_header=True)
        monthly_table.add_column("Month", style="cyan")
        monthly_table.add_column("Picks", justify="right")
        monthly_table.add_column("W-L", justify="right")
        monthly_table.add_column("Accuracy", justify="right")
        monthly_table.add_column("ROI", justify="right")

        for month in result.test.monthly:
            roi_color = "[green]" if month["roi"] > 0 else "[red]"
            monthly_table.add_row(
                month["month"],
                str(month["picks"]),
                f"{month['wins']}-{month['losses']}",
                f"{month['accuracy']:.1f}%",
                f"{roi_color}{month['roi']:+.1f}%[/]",
            )

        console.print(monthly_table)

    if report.recommendations:
        console.print("\n[bold blue]=== Recommendations ===[/bold blue]\n")
        for rec in report.recommendations:
            console.print(f"  [yellow]*[/yellow] {rec}")

    console.print("")

    return buffer.getvalue()


def _split_rows():
    return [
        ("Picks", lambda m: str(m.picks)),
        ("W-L-P", lambda m: f"{m.wins}-{m.losses}-{m.pushes}"),
        ("Accuracy", lambda m: f"{m.accuracy:.1f}%"),
        ("Accuracy 95% CI", lambda m: f"{m.accuracy_ci[0]:.1f}-{m.accuracy_ci[1]:.1f}"),
        ("ROI @ -110", lambda m: f"{m.roi_pct:+.2f}%"),
        ("ROI 95% CI", lambda m: f"{m.roi_ci[0]:+.1f}/{m.roi_ci[1]:+.1f}"),
        ("Sharpe", lambda m: f"{m.sharpe:.3f}"),
    ]


def _status(ok: bool) -> str:
    return "[green]PASS[/green]" if ok else "[red]FAIL[/red]"


def _generate_recommendations(result: "BacktestResult") -> list[str]:
    """Generate actionable recommendations based on metrics."""
    recommendations = []
    test: SplitMetrics = result.test
    gate = result.config.gate

    for failure in result.grade.failures:
        recommendations.append(f"Rejected: {failure}.")

    if result.overfit_gap > gate.max_gap / 2:
        recommendations.append(
            "Training accuracy runs well ahead of held-out accuracy. "
            "Raise ridge λ or drop features before trusting this configuration."
        )

    if test.picks and test.accuracy_ci[0] < 52.38:
        recommendations.append(
            "The lower accuracy bound is below the -110 break-even (52.4%). "
            "The edge is not distinguishable from noise at this sample size."
        )

    if test.picks < gate.min_picks:
        recommendations.append(
            "Small sample size. Run the backtest over more seasons, or lower "
            "the edge thresholds, before publishing tiers."
        )

    if test.monthly:
        rois = [m["roi"] for m in test.monthly]
        roi_std = float(np.std(rois))
        if roi_std > 15:
            recommendations.append(
                f"High monthly variance (std: {roi_std:.1f}%). "
                "Check whether a single month drives the result."
            )

    if not recommendations:
        recommendations.append(
            "Configuration clears every gate. Publish it as a new tier table "
            "version and keep validating against live results."
        )

    return recommendations
