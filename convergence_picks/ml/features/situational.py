"""Situational feature computation.

Computes game context features that don't depend on team quality:
- Rest days between games
- Back-to-back detection
- Schedule density (games in recent window)
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from convergence_picks.ml.data.schema import GameRecord, as_date

MAX_REST_DAYS = 7


@dataclass(frozen=True)
class RestProfile:
    """Rest situation for both teams before a game.

    Attributes:
        home_rest_days / away_rest_days: Days since last game (1-7, capped)
        home_b2b / away_b2b: Playing on consecutive days
        home_games_last_7 / away_games_last_7: Games in the prior 7 days
        home_has_history / away_has_history: Whether any prior game exists
    """

    home_rest_days: float
    away_rest_days: float
    home_b2b: bool
    away_b2b: bool
    home_games_last_7: int
    away_games_last_7: int
    home_has_history: bool
    away_has_history: bool

    @property
    def rest_advantage(self) -> float:
        """Home rest days minus away rest days."""
        return self.home_rest_days - self.away_rest_days


def compute_rest_profile(
    games: list[GameRecord],
    game_date: date | datetime,
    home_team: str,
    away_team: str,
) -> RestProfile:
    """Compute rest/back-to-back situation for a game.

    Uses only games BEFORE game_date (strict < comparison).

    Args:
        games: Completed games to compute from
        game_date: Date of the target game
        home_team: Home team name
        away_team: Away team name

    Returns:
        RestProfile for the matchup
    """
    target_date = as_date(game_date)
    prior_games = [g for g in games if g.game_date < target_date]

    home_games = _get_team_games(prior_games, home_team)
    away_games = _get_team_games(prior_games, away_team)

    home_rest = _compute_rest_days(home_games, target_date)
    away_rest = _compute_rest_days(away_games, target_date)

    return RestProfile(
        home_rest_days=home_rest,
        away_rest_days=away_rest,
        home_b2b=bool(home_games) and home_rest == 1,
        away_b2b=bool(away_games) and away_rest == 1,
        home_games_last_7=_count_games_in_window(home_games, target_date, days=7),
        away_games_last_7=_count_games_in_window(away_games, target_date, days=7),
        home_has_history=bool(home_games),
        away_has_history=bool(away_games),
    )


def _get_team_games(games: list[GameRecord], team: str) -> list[GameRecord]:
    """Get all games where team participated, sorted by date."""
    return sorted((g for g in games if g.involves(team)), key=lambda g: g.game_date)


def _compute_rest_days(team_games: list[GameRecord], target_date: date) -> float:
    """Compute days since team's last game.

    Returns:
        Days of rest (capped at 7). Returns 7.0 if no prior games.
    """
    if not team_games:
        return float(MAX_REST_DAYS)

    days_rest = (target_date - team_games[-1].game_date).days
    return float(min(max(days_rest, 0), MAX_REST_DAYS))


def _count_games_in_window(
    team_games: list[GameRecord],
    target_date: date,
    days: int,
) -> int:
    """Count how many games team played in the last N days."""
    window_start = target_date - timedelta(days=days)
    return sum(1 for g in team_games if window_start <= g.game_date < target_date)
