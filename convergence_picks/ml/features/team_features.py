"""Point-in-time team features computed from completed games and snapshots.

Computes:
- Season-to-date straight-up, ATS and over/under records
- Last-5 ATS and over/under form
- Head-to-head records between two teams
- Power ratings (average margin, points for/against) from game results
- Matchup efficiency features from rating snapshots (for the totals model)

CRITICAL: Every function uses only games strictly BEFORE the target date.
Games on the target date itself are excluded so a same-day result can
never leak into a pre-game feature.
"""

from dataclasses import dataclass
from datetime import date, datetime

from convergence_picks.ml.data.schema import (
    GameRecord,
    SpreadResult,
    TotalResult,
    as_date,
)
from convergence_picks.ml.data.snapshots import SnapshotStore

RECENT_GAMES = 5
MIN_POWER_RATING_GAMES = 4


@dataclass(frozen=True)
class TeamRecord:
    """Season-to-date record for one team, from that team's perspective.

    Attributes:
        team: Canonical team name
        games: Games played before the target date this season
        wins / losses: Straight-up record (ties counted in neither)
        ats_covered / ats_lost: Against-the-spread record (pushes excluded)
        overs / unders: Over/under record in this team's games
        last5_ats_covered / last5_ats_lost: ATS record over the last 5 games
        last5_overs / last5_unders: O/U record over the last 5 games
    """

    team: str
    games: int = 0
    wins: int = 0
    losses: int = 0
    ats_covered: int = 0
    ats_lost: int = 0
    overs: int = 0
    unders: int = 0
    last5_ats_covered: int = 0
    last5_ats_lost: int = 0
    last5_overs: int = 0
    last5_unders: int = 0

    @property
    def ats_decided(self) -> int:
        return self.ats_covered + self.ats_lost

    @property
    def ou_decided(self) -> int:
        return self.overs + self.unders

    @property
    def ats_pct(self) -> float:
        """ATS cover percentage (50.0 with no decided games)."""
        if self.ats_decided == 0:
            return 50.0
        return round(self.ats_covered / self.ats_decided * 100, 1)

    @property
    def over_pct(self) -> float:
        if self.ou_decided == 0:
            return 50.0
        return round(self.overs / self.ou_decided * 100, 1)


@dataclass(frozen=True)
class HeadToHead:
    """Head-to-head history between two teams, from the home team's side.

    Attributes:
        games: Number of prior meetings (any venue)
        home_ats_covered / home_ats_lost: ATS record of the current home team
        avg_total_points: Average combined score across meetings
        overs / unders: O/U record across meetings
    """

    games: int = 0
    home_ats_covered: int = 0
    home_ats_lost: int = 0
    avg_total_points: float = 0.0
    overs: int = 0
    unders: int = 0

    @property
    def ats_decided(self) -> int:
        return self.home_ats_covered + self.home_ats_lost


@dataclass(frozen=True)
class PowerRating:
    """Average margin and scoring for one team over the season so far."""

    avg_margin: float
    avg_for: float
    avg_against: float
    games: int


def build_team_record(
    games: list[GameRecord],
    team: str,
    season: int,
    game_date: date | datetime,
) -> TeamRecord:
    """Compute a team's season-to-date record before ``game_date``.

    Args:
        games: Completed games (any order, any teams)
        team: Team to compute the record for
        season: Season to restrict to
        game_date: Target game date (only strictly earlier games count)

    Returns:
        TeamRecord (all zeros when the team has no prior games)
    """
    team_games = _get_team_games(_prior_games(games, game_date), team)
    team_games = [g for g in team_games if g.season == season]

    wins = losses = 0
    ats_cov = ats_lost = overs = unders = 0
    for g in team_games:
        margin = _team_margin(g, team)
        if margin > 0:
            wins += 1
        elif margin < 0:
            losses += 1

        covered = _team_covered(g, team)
        if covered is True:
            ats_cov += 1
        elif covered is False:
            ats_lost += 1

        if g.total_result == TotalResult.OVER:
            overs += 1
        elif g.total_result == TotalResult.UNDER:
            unders += 1

    last = team_games[-RECENT_GAMES:]
    l5_cov = sum(1 for g in last if _team_covered(g, team) is True)
    l5_lost = sum(1 for g in last if _team_covered(g, team) is False)
    l5_over = sum(1 for g in last if g.total_result == TotalResult.OVER)
    l5_under = sum(1 for g in last if g.total_result == TotalResult.UNDER)

    return TeamRecord(
        team=team,
        games=len(team_games),
        wins=wins,
        losses=losses,
        ats_covered=ats_cov,
        ats_lost=ats_lost,
        overs=overs,
        unders=unders,
        last5_ats_covered=l5_cov,
        last5_ats_lost=l5_lost,
        last5_overs=l5_over,
        last5_unders=l5_under,
    )


def build_head_to_head(
    games: list[GameRecord],
    home_team: str,
    away_team: str,
    game_date: date | datetime,
) -> HeadToHead:
    """Compute head-to-head history before ``game_date`` across all seasons.

    ATS results are expressed for the team that is at home in the target
    game, regardless of where each prior meeting was played.
    """
    meetings = [
        g for g in _prior_games(games, game_date)
        if g.involves(home_team) and g.involves(away_team)
    ]
    if not meetings:
        return HeadToHead()

    cov = sum(1 for g in meetings if _team_covered(g, home_team) is True)
    lost = sum(1 for g in meetings if _team_covered(g, home_team) is False)
    total_points = sum(g.total_points for g in meetings)

    return HeadToHead(
        games=len(meetings),
        home_ats_covered=cov,
        home_ats_lost=lost,
        avg_total_points=round(total_points / len(meetings), 1),
        overs=sum(1 for g in meetings if g.total_result == TotalResult.OVER),
        unders=sum(1 for g in meetings if g.total_result == TotalResult.UNDER),
    )


def compute_power_rating(
    games: list[GameRecord],
    team: str,
    season: int,
    game_date: date | datetime,
) -> PowerRating | None:
    """Average margin / points for / points against this season.

    Returns:
        PowerRating, or None with fewer than MIN_POWER_RATING_GAMES games
    """
    team_games = [
        g for g in _get_team_games(_prior_games(games, game_date), team)
        if g.season == season
    ]
    if len(team_games) < MIN_POWER_RATING_GAMES:
        return None

    points_for = sum(_team_points(g, team)[0] for g in team_games)
    points_against = sum(_team_points(g, team)[1] for g in team_games)
    n = len(team_games)
    return PowerRating(
        avg_margin=(points_for - points_against) / n,
        avg_for=points_for / n,
        avg_against=points_against / n,
        games=n,
    )


def compute_matchup_features(
    store: SnapshotStore,
    home_team: str,
    away_team: str,
    game_date: date | datetime,
) -> dict[str, float] | None:
    """Efficiency features for a matchup from pre-game rating snapshots.

    Returns:
        Dictionary of feature names to float values, or None when either
        team has no snapshot yet:
        - sum_oe, sum_de: Combined offensive / defensive efficiency
        - avg_tempo, tempo_diff: Average and absolute tempo gap
        - em_diff: Home minus away efficiency margin
        - home_rank, away_rank: Overall ranks (0 when unranked)
    """
    home = store.lookup_pregame(home_team, game_date)
    away = store.lookup_pregame(away_team, game_date)
    if home is None or away is None:
        return None

    return {
        "sum_oe": home.adj_oe + away.adj_oe,
        "sum_de": home.adj_de + away.adj_de,
        "avg_tempo": (home.adj_tempo + away.adj_tempo) / 2,
        "tempo_diff": abs(home.adj_tempo - away.adj_tempo),
        "em_diff": home.adj_em - away.adj_em,
        "home_rank": float(home.rank or 0),
        "away_rank": float(away.rank or 0),
    }


def _prior_games(games: list[GameRecord], game_date: date | datetime) -> list[GameRecord]:
    """Completed games strictly before the target date (no leakage)."""
    target = as_date(game_date)
    return [g for g in games if g.game_date < target and g.is_final]


def _get_team_games(games: list[GameRecord], team: str) -> list[GameRecord]:
    """Get all games where team participated, sorted by date."""
    return sorted((g for g in games if g.involves(team)), key=lambda g: g.game_date)


def _team_points(game: GameRecord, team: str) -> tuple[int, int]:
    if game.home_team == team:
        return game.home_score, game.away_score
    return game.away_score, game.home_score


def _team_margin(game: GameRecord, team: str) -> int:
    scored, allowed = _team_points(game, team)
    return scored - allowed


def _team_covered(game: GameRecord, team: str) -> bool | None:
    """Whether ``team`` covered; None for a push or unsettled spread."""
    result = game.spread_result
    if result is None or result == SpreadResult.PUSH:
        return None
    home_covered = result == SpreadResult.COVERED
    return home_covered if game.home_team == team else not home_covered
