"""Rich table formatters for picks and ratings.

Formats Pick objects and Elo ratings into terminal tables with tier
coloring and a detail panel listing the contributing signals.
"""

from rich.panel import Panel
from rich.table import Table

from convergence_picks.picks.models import Pick
from convergence_picks.ratings.elo import EloRating
from convergence_picks.signals.base import Strength

_TIER_STYLE = {5: "bold green", 4: "green", 3: "yellow"}
_STRENGTH_STYLE = {
    Strength.STRONG: "bold green",
    Strength.MODERATE: "green",
    Strength.WEAK: "yellow",
    Strength.NOISE: "dim",
}


def format_stars(tier: int) -> str:
    """Star string for a tier (e.g. 4 -> "★★★★")."""
    return "★" * tier


def format_picks_table(picks: list[Pick], title: str = "Picks") -> Table:
    """Format picks as a Rich table, in the order given.

    Args:
        picks: Picks, usually already sorted by score
        title: Table title

    Returns:
        Rich Table with one row per pick
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Rank", justify="right", style="dim", width=4)
    table.add_column("Matchup", justify="left", style="white", no_wrap=True)
    table.add_column("Market", justify="center", style="yellow")
    table.add_column("Pick", justify="left", style="bold white")
    table.add_column("Score", justify="right", style="cyan")
    table.add_column("Edge", justify="right", style="magenta")
    table.add_column("Tier", justify="center")
    table.add_column("Headline", justify="left")

    if not picks:
        table.add_row("", "[dim]No picks reached a tier[/dim]", "", "", "", "", "", "")
        return table

    for idx, pick in enumerate(picks, start=1):
        style = _TIER_STYLE.get(pick.tier, "white")
        table.add_row(
            str(idx),
            f"{pick.away_team} @ {pick.home_team}",
            pick.market.value,
            pick.label,
            str(pick.score),
            f"{pick.edge:.1f}" if pick.edge is not None else "-",
            f"[{style}]{format_stars(pick.tier)}[/{style}]",
            pick.headline,
        )

    return table


def format_pick_detail(pick: Pick) -> Panel:
    """Detail panel listing a pick's reasoning entries."""
    lines = [
        f"[bold white]{pick.away_team} @ {pick.home_team}[/bold white]",
        f"Pick: [yellow]{pick.label}[/yellow]  Score: [cyan]{pick.score}[/cyan]  "
        f"Tier: {format_stars(pick.tier)}",
        "",
    ]
    for reason in pick.reasons:
        style = _STRENGTH_STYLE[reason.strength]
        lines.append(f"  [{style}]{reason.strength.value:<8}[/{style}] {reason.text} ({reason.weight})")

    return Panel(
        "\n".join(lines),
        title=f"[bold]{pick.headline or pick.label}[/bold]",
        border_style="green" if pick.tier >= 4 else "yellow",
    )


def format_elo_table(ratings: list[EloRating], top: int | None = None) -> Table:
    """Latest rating per team, highest first.

    Args:
        ratings: Replayed rating history
        top: Show only the first ``top`` teams (all when None)
    """
    latest: dict[str, EloRating] = {}
    for r in ratings:
        if r.team not in latest or r.date >= latest[r.team].date:
            latest[r.team] = r
    ranked = sorted(latest.values(), key=lambda r: (-r.rating, r.team))
    if top:
        ranked = ranked[:top]

    table = Table(title="Elo Ratings", show_header=True, header_style="bold cyan")
    table.add_column("Rank", justify="right", style="dim", width=4)
    table.add_column("Team", style="white")
    table.add_column("Rating", justify="right", style="cyan")
    table.add_column("As of", justify="right", style="dim")
    for idx, r in enumerate(ranked, start=1):
        table.add_row(str(idx), r.team, f"{r.rating:.1f}", r.date.isoformat())
    return table
