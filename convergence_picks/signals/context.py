"""Point-in-time inputs for the signal library.

A ``SignalContext`` bundles everything known about a game before tip-off.
It is built once per game by ``build_signal_context`` and then passed to
every signal; fields a data source could not provide stay None and the
signals that need them go neutral.
"""

from dataclasses import dataclass, field

from convergence_picks.ml.data.schema import (
    GameContext,
    GameRecord,
    PlayerGameLog,
    PropCandidate,
    TeamRatingSnapshot,
)
from convergence_picks.ml.data.snapshots import SnapshotStore
from convergence_picks.ml.features.situational import RestProfile, compute_rest_profile
from convergence_picks.ml.features.team_features import (
    HeadToHead,
    PowerRating,
    TeamRecord,
    build_head_to_head,
    build_team_record,
    compute_matchup_features,
    compute_power_rating,
)
from convergence_picks.ml.features.trend_angles import TrendAngle, discover_team_angles
from convergence_picks.ml.models.regression import RegressionModel
from convergence_picks.ratings.elo import EloHistory


@dataclass(frozen=True)
class SignalContext:
    """Everything a signal may read for one game.

    Attributes:
        game: The upcoming game with its market lines
        home_record / away_record: Season-to-date records
        h2h: Head-to-head history
        rest: Rest / back-to-back profile
        home_snapshot / away_snapshot: Pre-game rating snapshots
        league_tempo: Average tempo across all teams' pre-game snapshots
        home_power / away_power: Season power ratings from results
        predicted_total: Totals-model prediction from matchup features
        home_elo / away_elo: Elo ratings entering the game
        home_angles / away_angles: Situational trend angles for each team
        player_logs: Prior game logs for players with props on this game
        prop: The prop being evaluated (prop signals only)
    """

    game: GameContext
    home_record: TeamRecord | None = None
    away_record: TeamRecord | None = None
    h2h: HeadToHead | None = None
    rest: RestProfile | None = None
    home_snapshot: TeamRatingSnapshot | None = None
    away_snapshot: TeamRatingSnapshot | None = None
    league_tempo: float | None = None
    home_power: PowerRating | None = None
    away_power: PowerRating | None = None
    predicted_total: float | None = None
    home_elo: float | None = None
    away_elo: float | None = None
    home_angles: tuple[TrendAngle, ...] | None = None
    away_angles: tuple[TrendAngle, ...] | None = None
    player_logs: tuple[PlayerGameLog, ...] = field(default=(), repr=False)
    prop: PropCandidate | None = None


def build_signal_context(
    game: GameContext,
    history: list[GameRecord],
    store: SnapshotStore | None = None,
    elo: EloHistory | None = None,
    totals_model: RegressionModel | None = None,
    player_logs: list[PlayerGameLog] | None = None,
) -> SignalContext:
    """Assemble the point-in-time context for one game.

    Only information dated strictly before ``game.game_date`` is used:
    records and rest from prior games, snapshots published before game day,
    Elo ratings after the teams' previous games.

    Args:
        game: Upcoming game
        history: Completed games for the sport (any order)
        store: Rating snapshots (optional)
        elo: Replayed Elo history (optional)
        totals_model: Fitted totals model (optional)
        player_logs: Player game logs for prop signals (optional)

    Returns:
        SignalContext with every input that could be computed
    """
    home, away, day = game.home_team, game.away_team, game.game_date

    home_snap = away_snap = None
    league_tempo = None
    predicted_total = None
    if store is not None:
        home_snap = store.lookup_pregame(home, day)
        away_snap = store.lookup_pregame(away, day)
        league_tempo = _league_tempo(store, day)
        if totals_model is not None and totals_model.is_fitted:
            features = compute_matchup_features(store, home, away, day)
            if features is not None:
                predicted_total = totals_model.predict_one(
                    {name: features[name] for name in totals_model.feature_names}
                )

    logs: tuple[PlayerGameLog, ...] = ()
    if player_logs and game.props:
        players = {p.player_name for p in game.props}
        logs = tuple(
            log for log in player_logs if log.player_name in players and log.game_date < day
        )

    return SignalContext(
        game=game,
        home_record=build_team_record(history, home, game.season, day),
        away_record=build_team_record(history, away, game.season, day),
        h2h=build_head_to_head(history, home, away, day),
        rest=compute_rest_profile(history, day, home, away),
        home_snapshot=home_snap,
        away_snapshot=away_snap,
        league_tempo=league_tempo,
        home_power=compute_power_rating(history, home, game.season, day),
        away_power=compute_power_rating(history, away, game.season, day),
        predicted_total=predicted_total,
        home_elo=elo.rating_before(home, day) if elo is not None else None,
        away_elo=elo.rating_before(away, day) if elo is not None else None,
        home_angles=discover_team_angles(
            history, home, "home", game.season, day, game.spread, game.neutral_site
        ),
        away_angles=discover_team_angles(
            history,
            away,
            "away",
            game.season,
            day,
            -game.spread if game.spread is not None else None,
            game.neutral_site,
        ),
        player_logs=logs,
    )


def _league_tempo(store: SnapshotStore, game_date) -> float | None:
    snaps = [store.lookup_pregame(team, game_date) for team in store.teams]
    tempos = [s.adj_tempo for s in snaps if s is not None]
    if not tempos:
        return None
    return sum(tempos) / len(tempos)
