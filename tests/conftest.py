"""Shared pytest fixtures for pick engine tests."""

from datetime import date, timedelta

import pytest

from convergence_picks.ml.data.schema import (
    GameContext,
    GameRecord,
    Market,
    Sport,
    TeamRatingSnapshot,
)
from convergence_picks.monitoring import configure_logging
from convergence_picks.picks.models import Pick, make_pick_id
from convergence_picks.signals.base import Direction, SignalResult, Strength


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Configure structlog for test output."""
    configure_logging("development")


@pytest.fixture
def make_game():
    """Factory for settled GameRecords.

    Defaults to an unplayed NCAAMB game; pass scores to make it final.
    """

    def _make(
        game_id: str = "g1",
        game_date: date = date(2025, 1, 10),
        home_team: str = "Duke",
        away_team: str = "UNC",
        home_score: int | None = None,
        away_score: int | None = None,
        sport: Sport = Sport.NCAAMB,
        season: int = 2025,
        **kwargs,
    ) -> GameRecord:
        return GameRecord(
            game_id=game_id,
            sport=sport,
            season=season,
            game_date=game_date,
            home_team=home_team,
            away_team=away_team,
            home_score=home_score,
            away_score=away_score,
            **kwargs,
        ).settled()

    return _make


@pytest.fixture
def make_context():
    """Factory for upcoming GameContexts."""

    def _make(
        game_id: str = "up1",
        game_date: date = date(2025, 1, 15),
        home_team: str = "Duke",
        away_team: str = "UNC",
        sport: Sport = Sport.NCAAMB,
        season: int = 2025,
        **kwargs,
    ) -> GameContext:
        return GameContext(
            game_id=game_id,
            sport=sport,
            season=season,
            game_date=game_date,
            home_team=home_team,
            away_team=away_team,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_snapshot():
    """Factory for TeamRatingSnapshots."""

    def _make(
        team: str = "Duke",
        as_of_date: date = date(2025, 1, 1),
        adj_oe: float = 110.0,
        adj_de: float = 95.0,
        adj_tempo: float = 68.0,
        rank: int | None = None,
    ) -> TeamRatingSnapshot:
        return TeamRatingSnapshot(
            team=team,
            as_of_date=as_of_date,
            adj_oe=adj_oe,
            adj_de=adj_de,
            adj_tempo=adj_tempo,
            rank=rank,
        )

    return _make


@pytest.fixture
def make_signal():
    """Factory for SignalResults with an explicit strength."""

    def _make(
        category: str,
        direction: Direction,
        magnitude: float,
        confidence: float,
        strength: Strength,
        edge: float | None = None,
    ) -> SignalResult:
        return SignalResult(
            category=category,
            direction=direction,
            magnitude=magnitude,
            confidence=confidence,
            strength=strength,
            label=f"{category} leans {direction.value}",
            edge=edge,
        )

    return _make


@pytest.fixture
def make_pick():
    """Factory for pending Picks."""

    def _make(
        market: Market = Market.SPREAD,
        side: Direction = Direction.HOME,
        line: float = -3.5,
        game_id: str = "g1",
        game_date: date = date(2025, 1, 10),
        player_name: str | None = None,
        prop_stat: str | None = None,
        tier: int = 4,
    ) -> Pick:
        return Pick(
            pick_id=make_pick_id(game_id, market, side, player_name, prop_stat),
            sport=Sport.NCAAMB,
            game_id=game_id,
            game_date=game_date,
            home_team="Duke",
            away_team="UNC",
            market=market,
            side=side,
            line=line,
            label="test pick",
            score=75,
            tier=tier,
            player_name=player_name,
            prop_stat=prop_stat,
        )

    return _make


@pytest.fixture
def convergence_history(make_game):
    """Season-to-date history where Duke covers every game and UNC covers none.

    Both teams play eight home games against one-off opponents on the same
    dates (Jan 3-10), so rest is even entering a Jan 15 meeting.
    """
    games = []
    for i in range(8):
        day = date(2025, 1, 3) + timedelta(days=i)
        games.append(
            make_game(
                game_id=f"duke-{i}",
                game_date=day,
                home_team="Duke",
                away_team=f"Opponent{i}",
                home_score=80,
                away_score=60,
                spread=-5.0,
            )
        )
        games.append(
            make_game(
                game_id=f"unc-{i}",
                game_date=day,
                home_team="UNC",
                away_team=f"Visitor{i}",
                home_score=60,
                away_score=70,
                spread=-3.0,
            )
        )
    return games


@pytest.fixture
def totals_backtest_data(make_game, make_snapshot):
    """Twenty NCAAMB games whose totals are an exact linear function of sum_oe.

    Ten games in season 2023 (train) and ten in 2024 (held out). Each line
    sits 5 points off the true total, over on even games and under on odd,
    so a correctly fit model gets every pick right with a 5-point edge.

    Returns:
        Tuple of (games, snapshots)
    """
    games = []
    snapshots = []
    for i in range(20):
        season = 2023 if i < 10 else 2024
        day = date(season, 1, 3 + i % 10)
        home, away = f"Home{i}", f"Away{i}"
        home_oe = 100.0 + i
        away_oe = 100.0 + (i % 5) * 2
        true_total = int(2 * (home_oe + away_oe) - 260)
        line = true_total - 5 if i % 2 == 0 else true_total + 5
        home_score = true_total // 2 + 3
        games.append(
            make_game(
                game_id=f"t{i:02d}",
                game_date=day,
                home_team=home,
                away_team=away,
                home_score=home_score,
                away_score=true_total - home_score,
                season=season,
                total=float(line),
            )
        )
        as_of = day - timedelta(days=2)
        snapshots.append(make_snapshot(home, as_of, adj_oe=home_oe, adj_de=100.0, adj_tempo=68.0))
        snapshots.append(make_snapshot(away, as_of, adj_oe=away_oe, adj_de=100.0, adj_tempo=68.0))
    return games, snapshots
