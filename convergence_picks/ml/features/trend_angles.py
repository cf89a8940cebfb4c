"""Situational trend angles for one team.

An angle is the team's ATS and over/under record in past games that share
a situation with the upcoming one: same venue, same favorite/underdog role,
same result in the previous game, same rest bucket. Records are drawn from
the current season and the two before it.

CRITICAL: Only games strictly BEFORE the target date are used.
"""

from dataclasses import dataclass
from datetime import date, datetime

from convergence_picks.ml.data.schema import GameRecord, TotalResult, as_date
from convergence_picks.ml.features.team_features import (
    _get_team_games,
    _prior_games,
    _team_covered,
    _team_margin,
)

ANGLE_SEASONS = 3


@dataclass(frozen=True)
class TrendAngle:
    """One team's record in a situation matching the upcoming game.

    Attributes:
        team: Canonical team name
        side: The team's side in the upcoming game ("home" or "away")
        label: Situation description, e.g. "as a favorite"
        games: Matching past games
        ats_covered / ats_lost: ATS record in those games (pushes excluded)
        overs / unders: O/U record in those games (pushes excluded)
    """

    team: str
    side: str
    label: str
    games: int = 0
    ats_covered: int = 0
    ats_lost: int = 0
    overs: int = 0
    unders: int = 0


def discover_team_angles(
    games: list[GameRecord],
    team: str,
    side: str,
    season: int,
    game_date: date | datetime,
    team_line: float | None = None,
    neutral_site: bool = False,
) -> tuple[TrendAngle, ...]:
    """Find the trend angles that apply to ``team`` in its upcoming game.

    Args:
        games: Completed games (any order, any teams)
        team: Team to look up
        side: "home" or "away" in the upcoming game
        season: Season of the upcoming game
        game_date: Date of the upcoming game
        team_line: The team's own spread in the upcoming game (negative
            when favored); the role angle is skipped when None or 0
        neutral_site: Skip the venue angle at neutral sites

    Returns:
        Angles with at least one matching past game, in a fixed order:
        venue, role, previous result, rest
    """
    target = as_date(game_date)
    window = [
        g
        for g in _get_team_games(_prior_games(games, target), team)
        if season - ANGLE_SEASONS < g.season <= season
    ]
    if not window:
        return ()

    # (game, its predecessor in the same season or None)
    paired = [
        (g, prev if prev is not None and prev.season == g.season else None)
        for g, prev in zip(window, [None] + window[:-1])
    ]
    last = window[-1]
    last_in_season = last if last.season == season else None

    filters = []
    if not neutral_site:
        at_home = side == "home"
        filters.append(
            (
                "at home" if at_home else "on the road",
                lambda g, prev: not g.neutral_site and (g.home_team == team) == at_home,
            )
        )

    if team_line:
        favored = team_line < 0
        filters.append(
            (
                "as a favorite" if favored else "as an underdog",
                lambda g, prev: _role(g, team) == favored,
            )
        )

    if last_in_season is not None:
        last_result = _result(last_in_season, team)
        if last_result is not None:
            filters.append(
                (
                    "after a win" if last_result else "after a loss",
                    lambda g, prev: prev is not None and _result(prev, team) == last_result,
                )
            )

        bucket = _rest_bucket((target - last_in_season.game_date).days)
        filters.append(
            (
                bucket,
                lambda g, prev: prev is not None
                and _rest_bucket((g.game_date - prev.game_date).days) == bucket,
            )
        )

    angles = []
    for label, matches in filters:
        matched = [g for g, prev in paired if matches(g, prev)]
        if matched:
            angles.append(_angle_record(team, side, label, matched))
    return tuple(angles)


def _role(game: GameRecord, team: str) -> bool | None:
    """True when ``team`` was favored, False as underdog, None for pick'em."""
    if not game.spread:
        return None
    line = game.spread if game.home_team == team else -game.spread
    return line < 0


def _result(game: GameRecord, team: str) -> bool | None:
    """True for a win, False for a loss, None for a tie."""
    margin = _team_margin(game, team)
    if margin == 0:
        return None
    return margin > 0


def _rest_bucket(days: int) -> str:
    if days <= 1:
        return "on a back-to-back"
    if days <= 3:
        return "on 2-3 days rest"
    return "on 4+ days rest"


def _angle_record(team: str, side: str, label: str, matched: list[GameRecord]) -> TrendAngle:
    covered = [_team_covered(g, team) for g in matched]
    return TrendAngle(
        team=team,
        side=side,
        label=label,
        games=len(matched),
        ats_covered=sum(1 for c in covered if c is True),
        ats_lost=sum(1 for c in covered if c is False),
        overs=sum(1 for g in matched if g.total_result == TotalResult.OVER),
        unders=sum(1 for g in matched if g.total_result == TotalResult.UNDER),
    )
