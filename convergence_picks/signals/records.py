"""Record-based signals: season-to-date and last-5 form, spread and total.

Season records use the Wilson lower bound so small samples lean less;
last-5 form uses raw rates with a streak bonus.
"""

from convergence_picks.exceptions import MissingData
from convergence_picks.ml.features.team_features import TeamRecord
from convergence_picks.signals.base import (
    TOTAL_SCALE,
    Direction,
    SignalResult,
    StrengthScale,
    clamp,
    require,
    signal,
    wilson_lean,
)
from convergence_picks.signals.context import SignalContext

MIN_ATS_GAMES = 5
MIN_OU_GAMES = 8
MIN_RECENT_GAMES = 3

# Season ATS buckets have no noise tier once past the 0.5 cutoff
SEASON_ATS_SCALE = StrengthScale(strong=7.0, moderate=3.5, weak=0.0)
RECENT_FORM_SCALE = StrengthScale(strong=7.0, moderate=4.0, weak=0.0)
RECENT_OU_SCALE = StrengthScale(strong=6.0, moderate=3.0, weak=0.0)


def _records(ctx: SignalContext) -> tuple[TeamRecord, TeamRecord]:
    return require(ctx.home_record, "home record"), require(ctx.away_record, "away record")


@signal("seasonATS")
def season_ats(ctx: SignalContext) -> SignalResult:
    home, away = _records(ctx)
    home_edge = wilson_lean(home.ats_covered, home.ats_lost) if home.ats_decided >= MIN_ATS_GAMES else 0.0
    away_edge = wilson_lean(away.ats_covered, away.ats_lost) if away.ats_decided >= MIN_ATS_GAMES else 0.0

    net = home_edge - away_edge
    magnitude = clamp(abs(net) * 50, 0, 10)
    label = (
        f"Season ATS: home {home.ats_covered}-{home.ats_lost} ({home.ats_pct}%), "
        f"away {away.ats_covered}-{away.ats_lost} ({away.ats_pct}%)"
    )
    if magnitude < 0.5:
        return SignalResult.neutral("seasonATS", label)

    min_games = min(home.ats_decided, away.ats_decided)
    return SignalResult(
        category="seasonATS",
        direction=Direction.HOME if net > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=clamp(0.3 + min_games * 0.02, 0.3, 0.8),
        strength=SEASON_ATS_SCALE.classify(magnitude),
        label=label,
    )


@signal("seasonOU")
def season_ou(ctx: SignalContext) -> SignalResult:
    home, away = _records(ctx)
    home_lean = wilson_lean(home.overs, home.unders) if home.ou_decided >= MIN_OU_GAMES else 0.0
    away_lean = wilson_lean(away.overs, away.unders) if away.ou_decided >= MIN_OU_GAMES else 0.0

    lean = (home_lean + away_lean) / 2
    magnitude = clamp(abs(lean) * 50, 0, 10)
    label = (
        f"Season O/U: home {home.overs}-{home.unders} ({home.over_pct}%), "
        f"away {away.overs}-{away.unders} ({away.over_pct}%)"
    )
    if magnitude < 0.5:
        return SignalResult.neutral("seasonOU", label)

    min_games = min(home.ou_decided, away.ou_decided)
    return SignalResult(
        category="seasonOU",
        direction=Direction.OVER if lean > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=clamp(0.3 + min_games * 0.015, 0.3, 0.75),
        strength=TOTAL_SCALE.classify(magnitude),
        label=label,
    )


def _streak_bonus(covers: int) -> float:
    if covers >= 5:
        return 2.0
    if covers >= 4:
        return 1.0
    return 0.0


@signal("recentForm")
def recent_form(ctx: SignalContext) -> SignalResult:
    home, away = _records(ctx)
    home_n = home.last5_ats_covered + home.last5_ats_lost
    away_n = away.last5_ats_covered + away.last5_ats_lost
    if home_n < MIN_RECENT_GAMES and away_n < MIN_RECENT_GAMES:
        raise MissingData("Insufficient recent data")

    home_rate = home.last5_ats_covered / home_n if home_n else 0.5
    away_rate = away.last5_ats_covered / away_n if away_n else 0.5
    momentum = home_rate - away_rate

    magnitude = clamp(abs(momentum) * 10, 0, 10)
    magnitude = min(magnitude + _streak_bonus(home.last5_ats_covered), 10)
    magnitude = min(magnitude + _streak_bonus(away.last5_ats_covered), 10)

    label = (
        f"Last 5 ATS: home {home.last5_ats_covered}-{home.last5_ats_lost}, "
        f"away {away.last5_ats_covered}-{away.last5_ats_lost}"
    )
    # Streak bonuses alone carry no direction
    if magnitude < 1 or momentum == 0:
        return SignalResult.neutral("recentForm", label)

    return SignalResult(
        category="recentForm",
        direction=Direction.HOME if momentum > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=clamp(0.4 + min(home_n, away_n) * 0.08, 0.4, 0.7),
        strength=RECENT_FORM_SCALE.classify(magnitude),
        label=label,
    )


@signal("recentForm")
def recent_form_ou(ctx: SignalContext) -> SignalResult:
    home, away = _records(ctx)
    home_n = home.last5_overs + home.last5_unders
    away_n = away.last5_overs + away.last5_unders
    if home_n < MIN_RECENT_GAMES and away_n < MIN_RECENT_GAMES:
        raise MissingData("Insufficient recent O/U data")

    home_rate = home.last5_overs / home_n if home_n else 0.5
    away_rate = away.last5_overs / away_n if away_n else 0.5
    lean = (home_rate + away_rate) / 2 - 0.5

    magnitude = clamp(abs(lean) * 20, 0, 10)
    label = (
        f"Recent O/U: home {home.last5_overs}-{home.last5_unders}, "
        f"away {away.last5_overs}-{away.last5_unders}"
    )
    if magnitude < 1:
        return SignalResult.neutral("recentForm", label)

    return SignalResult(
        category="recentForm",
        direction=Direction.OVER if lean > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=0.5,
        strength=RECENT_OU_SCALE.classify(magnitude),
        label=label,
    )

