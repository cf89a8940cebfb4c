"""Tests for data schemas, point-in-time snapshots, sources and odds helpers.

Tests cover:
- Spread/total settlement from the home line
- GameRecord enrichment never overwriting settled data
- SnapshotStore point-in-time lookups and look-ahead detection
- InMemoryGameSource filtering
- Vig removal
"""

from datetime import date, datetime, timedelta

import pytest

from convergence_picks.exceptions import LookaheadViolation
from convergence_picks.ml.data.odds import (
    american_to_decimal,
    fair_moneyline_probs,
    get_market_vig,
    remove_vig,
)
from convergence_picks.ml.data.schema import (
    GameContext,
    PlayerGameLog,
    Sport,
    SpreadResult,
    TotalResult,
    WeatherForecast,
    settle_spread,
    settle_total,
)
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.data.sources import InMemoryGameSource


# ============================================================================
# Settlement
# ============================================================================


class TestSettlement:
    def test_home_favorite_covers(self):
        assert settle_spread(24, 20, -3.5) == SpreadResult.COVERED

    def test_home_favorite_fails_to_cover(self):
        assert settle_spread(24, 21, -3.5) == SpreadResult.LOST

    def test_home_underdog_covers_in_loss(self):
        assert settle_spread(20, 24, 6.5) == SpreadResult.COVERED

    def test_spread_push(self):
        assert settle_spread(24, 21, -3.0) == SpreadResult.PUSH

    def test_total_outcomes(self):
        assert settle_total(80, 70, 140.5) == TotalResult.OVER
        assert settle_total(60, 70, 140.5) == TotalResult.UNDER
        assert settle_total(70, 70, 140.0) == TotalResult.PUSH


class TestGameRecord:
    def test_settled_derives_outcomes(self, make_game):
        game = make_game(home_score=80, away_score=70, spread=-7.5, total=145.5)

        assert game.spread_result == SpreadResult.COVERED
        assert game.total_result == TotalResult.OVER
        assert game.score_difference == 10
        assert game.total_points == 150

    def test_unfinished_game_has_no_outcomes(self, make_game):
        game = make_game(spread=-7.5, total=145.5)

        assert not game.is_final
        assert game.spread_result is None
        assert game.score_difference is None

    def test_datetime_truncated_to_date(self, make_game):
        game = make_game(game_date=datetime(2025, 1, 10, 19, 30))
        assert game.game_date == date(2025, 1, 10)

    def test_enrich_fills_only_missing_fields(self, make_game):
        game = make_game(spread=-4.0)

        enriched = game.enrich(spread=-6.0, total=140.5, home_moneyline=-180)

        assert enriched.spread == -4.0
        assert enriched.total == 140.5
        assert enriched.home_moneyline == -180

    def test_enrich_rejects_non_market_fields(self, make_game):
        game = make_game()
        with pytest.raises(ValueError, match="non-market"):
            game.enrich(home_score=99)

    def test_context_from_record_drops_scores(self, make_game):
        game = make_game(home_score=80, away_score=70, spread=-3.0, neutral_site=True)

        ctx = GameContext.from_record(game)

        assert ctx.spread == -3.0
        assert ctx.neutral_site is True
        assert not hasattr(ctx, "home_score")

    def test_indoor_detection(self, make_context):
        assert make_context(sport=Sport.NBA).is_indoor
        assert not make_context(sport=Sport.NFL).is_indoor
        assert make_context(sport=Sport.NFL, weather=WeatherForecast(is_dome=True)).is_indoor


# ============================================================================
# Snapshot store
# ============================================================================


@pytest.fixture
def duke_store(make_snapshot):
    return SnapshotStore(
        [
            make_snapshot("Duke", date(2025, 1, 10), adj_oe=118.0),
            make_snapshot("Duke", date(2025, 1, 1), adj_oe=112.0),
            make_snapshot("Duke", date(2025, 1, 20), adj_oe=121.0),
            make_snapshot("UNC", date(2025, 1, 5), adj_oe=108.0),
        ]
    )


class TestSnapshotStore:
    def test_lookup_returns_latest_on_or_before(self, duke_store):
        snap = duke_store.lookup("Duke", date(2025, 1, 15))
        assert snap.as_of_date == date(2025, 1, 10)
        assert snap.adj_oe == 118.0

    def test_lookup_includes_same_day(self, duke_store):
        assert duke_store.lookup("Duke", date(2025, 1, 10)).as_of_date == date(2025, 1, 10)

    def test_lookup_before_first_snapshot(self, duke_store):
        assert duke_store.lookup("Duke", date(2024, 12, 31)) is None

    def test_unknown_team(self, duke_store):
        assert duke_store.lookup("Kansas", date(2025, 1, 15)) is None

    def test_pregame_lookup_excludes_game_day(self, duke_store):
        snap = duke_store.lookup_pregame("Duke", date(2025, 1, 10))
        assert snap.as_of_date == date(2025, 1, 1)

    def test_never_returns_future_snapshot(self, duke_store):
        day = date(2024, 12, 25)
        while day <= date(2025, 1, 31):
            for team in ("Duke", "UNC"):
                snap = duke_store.lookup(team, day)
                if snap is not None:
                    assert snap.as_of_date <= day
            day += timedelta(days=1)

    def test_history_is_point_in_time(self, duke_store):
        history = duke_store.history("Duke", date(2025, 1, 12))
        assert [s.as_of_date for s in history] == [date(2025, 1, 1), date(2025, 1, 10)]

    def test_duplicate_snapshot_rejected(self, make_snapshot):
        with pytest.raises(ValueError, match="cannot be revised"):
            SnapshotStore(
                [
                    make_snapshot("Duke", date(2025, 1, 1)),
                    make_snapshot("Duke", date(2025, 1, 1), adj_oe=120.0),
                ]
            )

    def test_efficiency_margin_derived(self, make_snapshot):
        snap = make_snapshot(adj_oe=115.0, adj_de=97.5)
        assert snap.adj_em == pytest.approx(17.5)

    def test_len_and_teams(self, duke_store):
        assert len(duke_store) == 4
        assert duke_store.teams == ["Duke", "UNC"]
        assert "UNC" in duke_store


class TestLookaheadViolation:
    def test_strict_lookups_never_raise_on_valid_history(self, make_snapshot):
        snaps = [make_snapshot("Duke", date(2025, 1, 1) + timedelta(days=3 * i)) for i in range(10)]
        store = SnapshotStore(reversed(snaps))

        day = date(2024, 12, 30)
        while day <= date(2025, 2, 5):
            snap = store.lookup("Duke", day)
            assert snap is None or snap.as_of_date <= day
            day += timedelta(days=1)

    def test_error_reports_both_dates(self):
        err = LookaheadViolation("Duke", date(2024, 12, 5), date(2025, 1, 10))

        assert err.team == "Duke"
        assert err.requested == date(2024, 12, 5)
        assert err.returned == date(2025, 1, 10)
        assert "2025-01-10" in str(err)
        assert isinstance(err, AssertionError)


# ============================================================================
# Game source
# ============================================================================


class TestInMemoryGameSource:
    def test_completed_games_filtered_and_sorted(self, make_game, make_context):
        games = [
            make_game("b", date(2025, 1, 12), home_score=70, away_score=60),
            make_game("a", date(2025, 1, 11), home_score=70, away_score=60),
            make_game("c", date(2025, 1, 13)),
            make_game("d", date(2024, 1, 13), home_score=70, away_score=60, season=2024),
            make_game("e", date(2025, 1, 13), home_score=90, away_score=80, sport=Sport.NBA),
        ]
        source = InMemoryGameSource(games=games)

        completed = source.get_completed_games(Sport.NCAAMB)
        assert [g.game_id for g in completed] == ["d", "a", "b"]

        in_2025 = source.get_completed_games(Sport.NCAAMB, seasons=(2025, 2025))
        assert [g.game_id for g in in_2025] == ["a", "b"]

    def test_upcoming_games_by_date(self, make_context):
        slate = [make_context("x", date(2025, 1, 15)), make_context("y", date(2025, 1, 16))]
        source = InMemoryGameSource(upcoming=slate)

        assert [g.game_id for g in source.get_upcoming_games(Sport.NCAAMB, date(2025, 1, 15))] == ["x"]

    def test_snapshot_store_defaults_to_empty(self):
        store = InMemoryGameSource().snapshot_store(Sport.NFL)
        assert len(store) == 0

    def test_get_snapshot_is_point_in_time(self, make_snapshot):
        source = InMemoryGameSource(
            snapshots={
                Sport.NCAAMB: [
                    make_snapshot("Duke", date(2025, 1, 1), adj_oe=118.0),
                    make_snapshot("Duke", date(2025, 1, 20), adj_oe=121.0),
                ]
            }
        )

        assert source.get_snapshot(Sport.NCAAMB, "Duke", date(2025, 1, 15)).adj_oe == 118.0
        assert source.get_snapshot(Sport.NCAAMB, "Duke", date(2024, 12, 31)) is None
        assert source.get_snapshot(Sport.NCAAMB, "UNC", date(2025, 1, 15)) is None

    def test_player_logs_filtered_by_sport(self):
        flagg = PlayerGameLog("Cooper Flagg", "Duke", date(2025, 1, 10), 2025, True, {"points": 25.0})
        tatum = PlayerGameLog("Jayson Tatum", "Celtics", date(2025, 1, 10), 2025, True, {"points": 31.0})
        source = InMemoryGameSource(player_logs={Sport.NCAAMB: [flagg], Sport.NBA: [tatum]})

        assert source.get_player_logs(Sport.NCAAMB) == [flagg]
        assert source.get_player_logs(Sport.NBA) == [tatum]
        assert source.get_player_logs(Sport.NFL) == []


# ============================================================================
# Odds
# ============================================================================


class TestOdds:
    def test_american_to_decimal(self):
        assert american_to_decimal(200) == 3.0
        assert american_to_decimal(-200) == 1.5

    def test_invalid_american_odds(self):
        with pytest.raises(ValueError):
            american_to_decimal(50)

    def test_remove_vig_standard_line(self):
        _, probs = remove_vig([1.909, 1.909])
        assert probs == pytest.approx([0.5, 0.5])

    def test_market_vig(self):
        assert get_market_vig([american_to_decimal(-110)] * 2) == pytest.approx(4.76, abs=0.01)

    def test_fair_moneyline_probs_sum_to_one(self):
        home, away = fair_moneyline_probs(-150, 130)
        assert home + away == pytest.approx(1.0)
        assert home > away
