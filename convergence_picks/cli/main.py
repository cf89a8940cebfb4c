"""Typer CLI entry point for the pick engine.

Provides:
- picks generate games.csv upcoming.csv --sport NCAAMB --date 2025-01-15
- picks backtest games.csv --snapshots ratings.csv --train 2023,2024 --test 2025
- picks elo games.csv --sport NFL
- picks version
"""

import os
from datetime import datetime

from dotenv import load_dotenv

# Load .env file before settings are read
load_dotenv()

import typer
from rich.console import Console
from rich.markup import escape

from convergence_picks import __version__
from convergence_picks.cli.formatters import (
    format_elo_table,
    format_pick_detail,
    format_picks_table,
)
from convergence_picks.cli.loaders import load_games, load_snapshots, load_upcoming
from convergence_picks.config import get_settings
from convergence_picks.exceptions import PickEngineError
from convergence_picks.ml.backtesting import format_report, load_backtest_config, run_backtest
from convergence_picks.ml.data.schema import Sport
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.data.sources import InMemoryGameSource
from convergence_picks.monitoring import configure_logging
from convergence_picks.picks.generator import PickGenerator
from convergence_picks.ratings.elo import recalculate_elo
from convergence_picks.scoring.tiers import TIER_REGISTRY

cli = typer.Typer(
    name="picks",
    help="""Signal-convergence pick engine.

WHAT IT DOES:
  Combines independent statistical signals (model edge, records, head-to-head,
  rest, market, Elo, pace, weather) into one confidence-scored pick per game
  and market, and validates configurations on held-out seasons.

QUICK START:
  picks generate games.csv slate.csv --sport NCAAMB --date 2025-01-15
  picks backtest games.csv --snapshots ratings.csv --train 2023,2024 --test 2025
  picks elo games.csv --sport NFL --top 10
""",
    add_completion=False,
)

console = Console(force_terminal=True, no_color=os.getenv("NO_COLOR") is not None)


def _seasons(value: str) -> list[int]:
    try:
        return [int(s) for s in value.split(",") if s.strip()]
    except ValueError as e:
        raise typer.BadParameter(f"Expected comma-separated seasons, got {value!r}") from e


@cli.command()
def generate(
    games: str = typer.Argument(..., help="CSV of completed games"),
    upcoming: str = typer.Argument(..., help="CSV of upcoming games with current lines"),
    sport: Sport = typer.Option(Sport.NCAAMB, "--sport", "-s", help="Sport to generate for"),
    game_date: str = typer.Option(None, "--date", "-d", help="Slate date YYYY-MM-DD (default: today)"),
    snapshots: str = typer.Option(None, "--snapshots", help="CSV of rating snapshots"),
    detail: bool = typer.Option(False, "--detail", help="Show the signals behind each pick"),
):
    """Generate picks for one sport and date.

    \b
    EXAMPLES:
      picks generate games.csv slate.csv --sport NBA
      picks generate games.csv slate.csv -s NCAAMB -d 2025-01-15 --snapshots kp.csv
    """
    try:
        day = datetime.strptime(game_date, "%Y-%m-%d").date() if game_date else None
        source = InMemoryGameSource(
            games=load_games(games),
            upcoming=load_upcoming(upcoming),
            snapshots={sport: load_snapshots(snapshots)} if snapshots else None,
            strict_lookahead=get_settings().strict_lookahead,
        )
        picks = PickGenerator(source).generate(sport, day)
    except (PickEngineError, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(code=1)

    console.print(format_picks_table(picks, title=f"{sport.value} picks"))
    if detail:
        for pick in picks:
            console.print(format_pick_detail(pick))


@cli.command()
def backtest(
    games: str = typer.Argument(..., help="CSV of completed games"),
    train: str = typer.Option(..., "--train", help="Training seasons, e.g. 2022,2023"),
    test: str = typer.Option(..., "--test", help="Held-out seasons, e.g. 2024"),
    sport: Sport = typer.Option(Sport.NCAAMB, "--sport", "-s"),
    market: str = typer.Option("TOTAL", "--market", "-m", help="SPREAD or TOTAL"),
    snapshots: str = typer.Option(None, "--snapshots", help="CSV of rating snapshots"),
    strategy: str = typer.Option("model", "--strategy", help="model or convergence"),
    features: str = typer.Option(None, "--features", help="Comma-separated regression features"),
    ridge_lambda: float = typer.Option(0.0, "--lambda", help="Ridge penalty"),
    min_edge: float = typer.Option(0.0, "--min-edge", help="Minimum |edge| to take a pick"),
    walk_forward: bool = typer.Option(False, "--walk-forward", help="Refit month by month"),
):
    """Evaluate a configuration on held-out seasons.

    Reports accuracy, ROI at -110, bootstrap intervals, Sharpe ratio and the
    overfitting gap, and grades the configuration against the gates.

    \b
    EXAMPLES:
      picks backtest games.csv --snapshots kp.csv --train 2023,2024 --test 2025
      picks backtest games.csv --snapshots kp.csv --train 2023 --test 2024 --lambda 10 --walk-forward
    """
    try:
        config = load_backtest_config(
            {
                "sport": sport,
                "market": market.upper(),
                "train_seasons": _seasons(train),
                "test_seasons": _seasons(test),
                "strategy": strategy,
                "features": features.split(",") if features else None,
                "ridge_lambda": ridge_lambda,
                "min_edge": min_edge,
                "walk_forward": walk_forward,
            }
        )
        store = None
        if snapshots:
            store = SnapshotStore(
                load_snapshots(snapshots), strict=get_settings().strict_lookahead
            )
        report = run_backtest(config, load_games(games), store)
    except (PickEngineError, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(code=1)

    console.print(format_report(report), end="")
    if not report.passed:
        raise typer.Exit(code=2)


@cli.command()
def elo(
    games: str = typer.Argument(..., help="CSV of completed games"),
    sport: Sport = typer.Option(Sport.NFL, "--sport", "-s"),
    top: int = typer.Option(25, "--top", "-n", help="Show top N teams (0 for all)"),
):
    """Rebuild Elo ratings from scratch and show the latest ratings."""
    try:
        ratings = recalculate_elo(sport, load_games(games))
    except (PickEngineError, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(code=1)

    console.print(format_elo_table(ratings, top=top or None))


@cli.command()
def version():
    """Show version and configuration info."""
    settings = get_settings()
    console.print(f"[bold cyan]Convergence Picks[/bold cyan] v{__version__}")
    console.print()
    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Environment: {settings.environment}")
    console.print(f"  Min active signals: {settings.min_active_signals}")
    console.print(f"  Fallback weight: {settings.fallback_weight}")
    console.print(f"  Tier table: {settings.tier_table_version or TIER_REGISTRY.get().version + ' (latest)'}")
    console.print(f"  Strict look-ahead checks: {'on' if settings.strict_lookahead else 'off'}")


def main():
    """Entry point for CLI."""
    configure_logging(get_settings().log_mode)
    cli()


if __name__ == "__main__":
    main()
