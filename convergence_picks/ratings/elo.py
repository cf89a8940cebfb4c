"""Elo rating engine.

Replays completed games in strict chronological order to produce team
ratings over time. Ratings are never patched incrementally: every rebuild
is a full deterministic replay, so the same games always yield the same
ratings.

Update rule per game:
    expected = 1 / (1 + 10^(-(home + hfa - away) / 400))
    k' = k × ln(|mov| + 1) × 2.2 / (winner_diff × 0.001 + 2.2)   (MOV multiplier)
    home += k' × (actual - expected);  away -= k' × (actual - expected)

At each season boundary every rating moves ``season_regression`` of the way
back toward the initial rating before the new season's first game.

Example:
    >>> engine = EloEngine(Sport.NFL)
    >>> ratings = engine.replay(games)
    >>> engine.current["Kansas City Chiefs"]
    1621.4...
"""

import math
from bisect import bisect_left
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime

from convergence_picks.exceptions import InvalidConfiguration
from convergence_picks.ml.data.schema import GameRecord, Sport, as_date
from convergence_picks.monitoring import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class EloConfig:
    """Per-sport Elo parameters.

    Attributes:
        k_factor: Base update size
        home_field_advantage: Rating points added to the home side (0 at neutral sites)
        season_regression: Fraction of distance to initial_elo removed at a season boundary
        initial_elo: Rating for a team on first appearance
        mov_multiplier: Scale K by margin of victory
    """

    k_factor: float
    home_field_advantage: float
    season_regression: float
    initial_elo: float = 1500.0
    mov_multiplier: bool = True

    def __post_init__(self) -> None:
        if self.k_factor <= 0:
            raise InvalidConfiguration(f"k_factor must be positive, got {self.k_factor}")
        if not 0.0 <= self.season_regression <= 1.0:
            raise InvalidConfiguration(
                f"season_regression must be in [0, 1], got {self.season_regression}"
            )


SPORT_CONFIGS: dict[Sport, EloConfig] = {
    Sport.NFL: EloConfig(k_factor=20, home_field_advantage=48, season_regression=0.33),
    Sport.NBA: EloConfig(k_factor=20, home_field_advantage=100, season_regression=0.25),
    Sport.NCAAMB: EloConfig(k_factor=32, home_field_advantage=100, season_regression=0.50),
    Sport.NCAAF: EloConfig(k_factor=25, home_field_advantage=55, season_regression=0.50),
}

# Rating points per point of spread
ELO_POINTS_PER_SPREAD_POINT = 25.0


@dataclass(frozen=True)
class EloRating:
    """A team's rating after its games on ``date``."""

    team: str
    sport: Sport
    date: date
    rating: float


def get_config(sport: Sport | str) -> EloConfig:
    """Look up the Elo config for a sport.

    Raises:
        InvalidConfiguration: If the sport has no Elo config
    """
    try:
        return SPORT_CONFIGS[Sport(sport)]
    except (KeyError, ValueError) as e:
        raise InvalidConfiguration(f"No Elo config for sport: {sport}") from e


def expected_win_prob(rating_diff: float) -> float:
    """Expected win probability given a rating difference (incl. home field)."""
    return 1.0 / (1.0 + 10 ** (-rating_diff / 400.0))


def mov_multiplier(margin: float, winner_elo_diff: float) -> float:
    """Margin-of-victory multiplier.

    Grows with the log of the margin and shrinks when the winner was
    already the stronger side, so blowouts of weak teams are not
    over-rewarded.

    Args:
        margin: Score margin (sign ignored)
        winner_elo_diff: Winner's rating minus loser's, including home field
    """
    return math.log(abs(margin) + 1) * 2.2 / (winner_elo_diff * 0.001 + 2.2)


def elo_to_spread(elo_diff: float) -> float:
    """Convert a rating difference to a predicted point margin."""
    return elo_diff / ELO_POINTS_PER_SPREAD_POINT


def regress_toward_mean(rating: float, config: EloConfig) -> float:
    """Move a rating ``season_regression`` of the way back to the initial value."""
    return config.initial_elo + (rating - config.initial_elo) * (1 - config.season_regression)


class EloEngine:
    """Chronological Elo replay for one sport.

    Attributes:
        sport: Sport being rated
        config: Elo parameters
        current: Latest rating per team after the last replay
    """

    def __init__(self, sport: Sport | str, config: EloConfig | None = None) -> None:
        self.sport = Sport(sport)
        self.config = config or get_config(self.sport)
        self.current: dict[str, float] = {}

    def replay(self, games: list[GameRecord]) -> list[EloRating]:
        """Rebuild ratings from scratch over ``games``.

        Games are processed in (date, game_id) order; unfinished games are
        ignored. When a team plays twice on one date only the later rating
        is kept for that date.

        Returns:
            Ratings per (team, date), ordered by date then team
        """
        cfg = self.config
        ratings: dict[str, float] = {}
        by_key: dict[tuple[str, date], float] = {}
        last_season: int | None = None

        ordered = sorted(
            (g for g in games if g.is_final and g.sport == self.sport),
            key=lambda g: (g.game_date, g.game_id),
        )

        for game in ordered:
            if last_season is not None and game.season != last_season:
                ratings = {team: regress_toward_mean(r, cfg) for team, r in ratings.items()}
            last_season = game.season

            home = ratings.setdefault(game.home_team, cfg.initial_elo)
            away = ratings.setdefault(game.away_team, cfg.initial_elo)

            delta = self._rating_delta(home, away, game)
            ratings[game.home_team] = home + delta
            ratings[game.away_team] = away - delta

            by_key[(game.home_team, game.game_date)] = ratings[game.home_team]
            by_key[(game.away_team, game.game_date)] = ratings[game.away_team]

        self.current = ratings
        history = [
            EloRating(team=team, sport=self.sport, date=day, rating=rating)
            for (team, day), rating in by_key.items()
        ]
        history.sort(key=lambda r: (r.date, r.team))
        return history

    def _rating_delta(self, home: float, away: float, game: GameRecord) -> float:
        cfg = self.config
        hfa = 0.0 if game.neutral_site else cfg.home_field_advantage
        elo_diff = home + hfa - away
        expected_home = expected_win_prob(elo_diff)

        margin = game.score_difference
        if margin > 0:
            actual_home = 1.0
        elif margin < 0:
            actual_home = 0.0
        else:
            actual_home = 0.5

        k = cfg.k_factor
        if cfg.mov_multiplier:
            winner_diff = elo_diff if actual_home == 1.0 else -elo_diff
            k *= mov_multiplier(margin, winner_diff)

        return k * (actual_home - expected_home)


class EloHistory:
    """Point-in-time access to replayed ratings.

    ``rating_before`` returns a team's rating as it stood entering a game,
    i.e. after its last game strictly before the given date.
    """

    def __init__(self, ratings: list[EloRating]) -> None:
        by_team: dict[str, list[EloRating]] = defaultdict(list)
        for r in ratings:
            by_team[r.team].append(r)
        self._ratings = {team: sorted(rs, key=lambda r: r.date) for team, rs in by_team.items()}
        self._dates = {team: [r.date for r in rs] for team, rs in self._ratings.items()}

    def rating_before(self, team: str, game_date: date | datetime) -> float | None:
        dates = self._dates.get(team)
        if not dates:
            return None
        idx = bisect_left(dates, as_date(game_date))
        if idx == 0:
            return None
        return self._ratings[team][idx - 1].rating


def recalculate_elo(sport: Sport | str, games: list[GameRecord]) -> list[EloRating]:
    """Full deterministic Elo rebuild for a sport.

    Args:
        sport: Sport to rebuild
        games: Completed games for that sport (any order)

    Returns:
        Ratings per (team, date)

    Raises:
        InvalidConfiguration: If the sport has no Elo config
    """
    engine = EloEngine(sport)
    history = engine.replay(games)
    log.info(
        "elo_recalculated",
        sport=engine.sport.value,
        ratings=len(history),
        teams=len(engine.current),
    )
    return history
