"""Tests for point-in-time team and situational features.

Every feature must ignore games on or after the target date.
"""

from datetime import date

import pytest

from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.features import (
    build_head_to_head,
    build_team_record,
    compute_matchup_features,
    compute_power_rating,
    compute_rest_profile,
    discover_team_angles,
)


class TestTeamRecord:
    def test_season_records(self, convergence_history):
        duke = build_team_record(convergence_history, "Duke", 2025, date(2025, 1, 15))
        unc = build_team_record(convergence_history, "UNC", 2025, date(2025, 1, 15))

        assert (duke.games, duke.wins, duke.losses) == (8, 8, 0)
        assert (duke.ats_covered, duke.ats_lost, duke.ats_pct) == (8, 0, 100.0)
        assert (duke.last5_ats_covered, duke.last5_ats_lost) == (5, 0)
        assert (unc.wins, unc.losses, unc.ats_covered, unc.ats_lost) == (0, 8, 0, 8)

    def test_same_day_games_excluded(self, convergence_history):
        record = build_team_record(convergence_history, "Duke", 2025, date(2025, 1, 6))
        assert record.games == 3

    def test_other_seasons_excluded(self, convergence_history):
        assert build_team_record(convergence_history, "Duke", 2024, date(2025, 1, 15)).games == 0

    def test_away_team_perspective(self, make_game):
        games = [make_game(home_score=70, away_score=75, spread=-3.0)]
        record = build_team_record(games, "UNC", 2025, date(2025, 1, 11))

        assert (record.wins, record.ats_covered) == (1, 1)

    def test_push_counts_for_neither_side(self, make_game):
        games = [make_game(home_score=73, away_score=70, spread=-3.0, total=143.0)]
        record = build_team_record(games, "Duke", 2025, date(2025, 1, 11))

        assert record.ats_decided == 0
        assert record.ou_decided == 0
        assert record.ats_pct == 50.0


class TestHeadToHead:
    def test_ats_from_current_home_team(self, make_game):
        games = [
            # Duke at home, covers
            make_game("m1", date(2023, 2, 1), "Duke", "UNC", 80, 70, season=2023, spread=-4.0, total=145.0),
            # UNC at home, Duke covers as the away side
            make_game("m2", date(2024, 2, 1), "UNC", "Duke", 70, 72, season=2024, spread=-1.0, total=150.0),
            # Duke at home, fails to cover
            make_game("m3", date(2025, 1, 5), "Duke", "UNC", 71, 70, season=2025, spread=-5.0, total=130.0),
            make_game("x", date(2025, 1, 6), "Duke", "Kansas", 90, 60),
        ]

        h2h = build_head_to_head(games, "Duke", "UNC", date(2025, 1, 15))

        assert h2h.games == 3
        assert (h2h.home_ats_covered, h2h.home_ats_lost) == (2, 1)
        assert h2h.avg_total_points == pytest.approx((150 + 142 + 141) / 3, abs=0.05)
        assert (h2h.overs, h2h.unders) == (2, 1)

    def test_no_meetings(self, convergence_history):
        h2h = build_head_to_head(convergence_history, "Duke", "UNC", date(2025, 1, 15))
        assert h2h.games == 0
        assert h2h.ats_decided == 0


class TestPowerRating:
    def test_averages(self, convergence_history):
        duke = compute_power_rating(convergence_history, "Duke", 2025, date(2025, 1, 15))

        assert duke.games == 8
        assert duke.avg_margin == 20.0
        assert (duke.avg_for, duke.avg_against) == (80.0, 60.0)

    def test_needs_four_games(self, convergence_history):
        assert compute_power_rating(convergence_history, "Duke", 2025, date(2025, 1, 6)) is None


class TestRestProfile:
    def test_even_rest(self, convergence_history):
        rest = compute_rest_profile(convergence_history, date(2025, 1, 15), "Duke", "UNC")

        assert rest.home_rest_days == rest.away_rest_days == 5.0
        assert rest.rest_advantage == 0.0
        assert not rest.home_b2b
        assert rest.home_games_last_7 == rest.away_games_last_7 == 3

    def test_back_to_back(self, convergence_history):
        rest = compute_rest_profile(convergence_history, date(2025, 1, 11), "Duke", "Kansas")

        assert rest.home_b2b
        assert rest.home_games_last_7 == 7
        assert not rest.away_has_history
        assert rest.away_rest_days == 7.0
        assert not rest.away_b2b


class TestTrendAngles:
    def test_favorite_at_home_after_wins(self, convergence_history):
        angles = discover_team_angles(
            convergence_history, "Duke", "home", 2025, date(2025, 1, 15), team_line=-3.0
        )

        summary = [(a.label, a.games, a.ats_covered, a.ats_lost) for a in angles]
        assert summary == [
            ("at home", 8, 8, 0),
            ("as a favorite", 8, 8, 0),
            ("after a win", 7, 7, 0),
        ]
        assert {a.side for a in angles} == {"home"}

    def test_road_underdog_after_a_loss(self, convergence_history):
        angles = discover_team_angles(
            convergence_history, "UNC", "away", 2025, date(2025, 1, 15), team_line=3.0
        )

        # No road or underdog games, and no prior game followed 4+ days rest
        assert [(a.label, a.games, a.ats_covered, a.ats_lost) for a in angles] == [
            ("after a loss", 7, 0, 7)
        ]

    def test_same_day_games_excluded(self, convergence_history):
        angles = discover_team_angles(
            convergence_history, "Duke", "home", 2025, date(2025, 1, 6), team_line=-3.0
        )

        assert [(a.label, a.games) for a in angles] == [
            ("at home", 3),
            ("as a favorite", 3),
            ("after a win", 2),
            ("on a back-to-back", 2),
        ]

    def test_neutral_site_and_pickem_skip_venue_and_role(self, convergence_history):
        angles = discover_team_angles(
            convergence_history,
            "Duke",
            "home",
            2025,
            date(2025, 1, 15),
            team_line=None,
            neutral_site=True,
        )
        assert [a.label for a in angles] == ["after a win"]

    def test_window_spans_three_seasons(self, make_game):
        games = [
            make_game("old", date(2022, 1, 10), home_score=80, away_score=70, spread=-4.0, total=140.5, season=2022),
            make_game("prev", date(2024, 1, 10), home_score=80, away_score=70, spread=-4.0, total=140.5, season=2024),
        ]

        angles = discover_team_angles(games, "Duke", "home", 2025, date(2025, 1, 10), team_line=-2.0)

        # Last season's game counts for venue and role but not as a predecessor
        assert [(a.label, a.games, a.overs, a.unders) for a in angles] == [
            ("at home", 1, 1, 0),
            ("as a favorite", 1, 1, 0),
        ]

    def test_no_history(self, convergence_history):
        assert discover_team_angles(convergence_history, "Kansas", "home", 2025, date(2025, 1, 15)) == ()


class TestMatchupFeatures:
    def test_features_from_pregame_snapshots(self, make_snapshot):
        store = SnapshotStore(
            [
                make_snapshot("Duke", date(2025, 1, 1), adj_oe=120.0, adj_de=95.0, adj_tempo=70.0, rank=3),
                make_snapshot("UNC", date(2025, 1, 1), adj_oe=110.0, adj_de=100.0, adj_tempo=66.0),
            ]
        )

        features = compute_matchup_features(store, "Duke", "UNC", date(2025, 1, 15))

        assert features == {
            "sum_oe": 230.0,
            "sum_de": 195.0,
            "avg_tempo": 68.0,
            "tempo_diff": 4.0,
            "em_diff": 15.0,
            "home_rank": 3.0,
            "away_rank": 0.0,
        }

    def test_missing_snapshot(self, make_snapshot):
        store = SnapshotStore([make_snapshot("Duke", date(2025, 1, 1))])
        assert compute_matchup_features(store, "Duke", "UNC", date(2025, 1, 15)) is None

    def test_game_day_snapshot_not_used(self, make_snapshot):
        store = SnapshotStore(
            [
                make_snapshot("Duke", date(2025, 1, 15)),
                make_snapshot("UNC", date(2025, 1, 15)),
            ]
        )
        assert compute_matchup_features(store, "Duke", "UNC", date(2025, 1, 15)) is None
