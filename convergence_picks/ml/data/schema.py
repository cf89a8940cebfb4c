"""Data schemas for rating snapshots, games and upcoming contexts.

Defines immutable dataclasses for:
- TeamRatingSnapshot: Efficiency ratings published for a team as of a date
- GameRecord: A scheduled or completed game with lines and settled outcomes
- GameContext: An upcoming game that needs picks, with current lines
- WeatherForecast / PropCandidate / PlayerGameLog: contextual inputs

Dates are calendar dates. A ``datetime`` passed where a date is expected
is truncated to its date so comparisons never mix the two types.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum


class Sport(str, Enum):
    NFL = "NFL"
    NBA = "NBA"
    NCAAMB = "NCAAMB"
    NCAAF = "NCAAF"


class SpreadResult(str, Enum):
    """Settled spread outcome from the home team's perspective."""

    COVERED = "COVERED"
    LOST = "LOST"
    PUSH = "PUSH"


class TotalResult(str, Enum):
    OVER = "OVER"
    UNDER = "UNDER"
    PUSH = "PUSH"


class Market(str, Enum):
    SPREAD = "SPREAD"
    TOTAL = "TOTAL"
    PROP = "PROP"


INDOOR_SPORTS = frozenset({Sport.NBA, Sport.NCAAMB})


def as_date(value: date | datetime) -> date:
    """Extract a calendar date, handling datetime vs date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def settle_spread(home_score: int, away_score: int, spread: float) -> SpreadResult:
    """Settle a spread bet from the home side.

    ``spread`` is the home line (negative when home is favored), so the
    home side covers when ``margin + spread > 0``.

    Example:
        >>> settle_spread(24, 20, -3.5)
        <SpreadResult.COVERED: 'COVERED'>
        >>> settle_spread(24, 21, -3.0)
        <SpreadResult.PUSH: 'PUSH'>
    """
    adjusted = (home_score - away_score) + spread
    if adjusted > 0:
        return SpreadResult.COVERED
    if adjusted < 0:
        return SpreadResult.LOST
    return SpreadResult.PUSH


def settle_total(home_score: int, away_score: int, total: float) -> TotalResult:
    """Settle an over/under bet against the posted total."""
    points = home_score + away_score
    if points > total:
        return TotalResult.OVER
    if points < total:
        return TotalResult.UNDER
    return TotalResult.PUSH


@dataclass(frozen=True)
class TeamRatingSnapshot:
    """Efficiency ratings for one team as published on ``as_of_date``.

    Immutable once published. A chain of snapshots for a team is ordered
    by ``as_of_date`` and never revised.

    Attributes:
        team: Canonical team name
        as_of_date: Date the ratings reflect (inclusive of games that day)
        adj_oe: Adjusted offensive efficiency (points per 100 possessions)
        adj_de: Adjusted defensive efficiency (points allowed per 100)
        adj_tempo: Adjusted possessions per 40 minutes / per game
        rank: Overall rank by efficiency margin (None if unranked)
        adj_em: Efficiency margin, derived as adj_oe - adj_de
    """

    team: str
    as_of_date: date
    adj_oe: float
    adj_de: float
    adj_tempo: float
    rank: int | None = None
    adj_em: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "as_of_date", as_date(self.as_of_date))
        object.__setattr__(self, "adj_em", self.adj_oe - self.adj_de)


@dataclass(frozen=True)
class GameRecord:
    """A game with its market lines and, once final, its settled outcomes.

    Immutable once final. Odds enrichment may fill fields that are still
    missing (see ``enrich``) but never touches scores or settled results.

    Attributes:
        game_id: Unique game identifier
        sport: Sport the game belongs to
        season: Season year (the year the season started)
        game_date: Calendar date of the game
        home_team: Canonical home team name
        away_team: Canonical away team name
        home_score: Final home score (None until final)
        away_score: Final away score (None until final)
        spread: Closing home spread, negative when home favored
        total: Closing over/under line
        home_moneyline: Home moneyline in American odds
        away_moneyline: Away moneyline in American odds
        neutral_site: Whether the game is played at a neutral site
        conference_game: Whether both teams share a conference
        spread_result: Settled spread outcome for the home side
        total_result: Settled over/under outcome
    """

    game_id: str
    sport: Sport
    season: int
    game_date: date
    home_team: str
    away_team: str
    home_score: int | None = None
    away_score: int | None = None
    spread: float | None = None
    total: float | None = None
    home_moneyline: int | None = None
    away_moneyline: int | None = None
    neutral_site: bool = False
    conference_game: bool = False
    spread_result: SpreadResult | None = None
    total_result: TotalResult | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "game_date", as_date(self.game_date))
        object.__setattr__(self, "sport", Sport(self.sport))

    @property
    def is_final(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def score_difference(self) -> int | None:
        """Home score minus away score (None until final)."""
        if not self.is_final:
            return None
        return self.home_score - self.away_score

    @property
    def total_points(self) -> int | None:
        if not self.is_final:
            return None
        return self.home_score + self.away_score

    def involves(self, team: str) -> bool:
        return self.home_team == team or self.away_team == team

    def settled(self) -> "GameRecord":
        """Return a copy with spread/total outcomes derived from the final score.

        Outcomes that are already settled are kept as-is.
        """
        if not self.is_final:
            return self
        spread_result = self.spread_result
        total_result = self.total_result
        if spread_result is None and self.spread is not None:
            spread_result = settle_spread(self.home_score, self.away_score, self.spread)
        if total_result is None and self.total is not None:
            total_result = settle_total(self.home_score, self.away_score, self.total)
        return replace(self, spread_result=spread_result, total_result=total_result)

    def enrich(self, **odds: float | int | None) -> "GameRecord":
        """Fill missing market fields without altering anything already set.

        Only ``spread``, ``total``, ``home_moneyline`` and ``away_moneyline``
        can be enriched. Fields that already hold a value are left alone.

        Raises:
            ValueError: If a non-market field is passed
        """
        allowed = {"spread", "total", "home_moneyline", "away_moneyline"}
        unknown = set(odds) - allowed
        if unknown:
            raise ValueError(f"Cannot enrich non-market fields: {sorted(unknown)}")

        updates = {
            name: value
            for name, value in odds.items()
            if value is not None and getattr(self, name) is None
        }
        if not updates:
            return self
        return replace(self, **updates)


@dataclass(frozen=True)
class WeatherForecast:
    """Game-time weather forecast for an outdoor venue."""

    temperature_f: float = 70.0
    wind_mph: float = 0.0
    gust_mph: float = 0.0
    precipitation_in: float = 0.0
    is_dome: bool = False


@dataclass(frozen=True)
class PropCandidate:
    """A player prop line offered for an upcoming game.

    Attributes:
        player_name: Player as named in game logs
        team: Team the player is on
        stat: Stat key (e.g. "passing_yards", "points")
        line: Posted prop line
    """

    player_name: str
    team: str
    stat: str
    line: float


@dataclass(frozen=True)
class PlayerGameLog:
    """One player's box-score line for one game."""

    player_name: str
    team: str
    game_date: date
    season: int
    is_home: bool
    stats: dict[str, float] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "game_date", as_date(self.game_date))


@dataclass(frozen=True)
class GameContext:
    """An upcoming game needing picks, with current market lines.

    Attributes:
        game_id: Unique game identifier
        sport: Sport of the game
        season: Season year
        game_date: Calendar date of the game
        home_team / away_team: Canonical team names
        spread: Current home spread (None if not posted)
        total: Current over/under (None if not posted)
        home_moneyline / away_moneyline: American odds (None if not posted)
        neutral_site: Neutral-site flag
        conference_game: Conference-game flag
        tournament: Tournament flag (carried for reporting; never used to
            adjust a score)
        weather: Forecast for outdoor venues
        props: Player prop lines offered for this game
    """

    game_id: str
    sport: Sport
    season: int
    game_date: date
    home_team: str
    away_team: str
    spread: float | None = None
    total: float | None = None
    home_moneyline: int | None = None
    away_moneyline: int | None = None
    neutral_site: bool = False
    conference_game: bool = False
    tournament: bool = False
    weather: WeatherForecast | None = None
    props: tuple[PropCandidate, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "game_date", as_date(self.game_date))
        object.__setattr__(self, "sport", Sport(self.sport))
        object.__setattr__(self, "props", tuple(self.props))

    @property
    def is_indoor(self) -> bool:
        if self.sport in INDOOR_SPORTS:
            return True
        return self.weather is not None and self.weather.is_dome

    @classmethod
    def from_record(cls, game: GameRecord, **context) -> "GameContext":
        """Build a pre-game context from a historical record.

        Scores and settled outcomes are dropped so nothing about the result
        can reach a signal.
        """
        return cls(
            game_id=game.game_id,
            sport=game.sport,
            season=game.season,
            game_date=game.game_date,
            home_team=game.home_team,
            away_team=game.away_team,
            spread=game.spread,
            total=game.total,
            home_moneyline=game.home_moneyline,
            away_moneyline=game.away_moneyline,
            neutral_site=game.neutral_site,
            conference_game=game.conference_game,
            **context,
        )
