"""Player prop signals.

Each signal reads the prop under evaluation (``ctx.prop``) and the
player's prior game logs, and leans over or under the posted line:
- Season hit rate (Wilson lean)
- Last-5 hit rate
- Hit rate at the same venue type (home/away)
- Median cushion: how far the season median sits from the line

A game exactly on the line is a push and counts as neither a hit nor a miss.
"""

from statistics import median

from convergence_picks.exceptions import MissingData
from convergence_picks.ml.data.schema import PlayerGameLog
from convergence_picks.signals.base import (
    TOTAL_SCALE,
    Direction,
    SignalResult,
    clamp,
    require,
    signal,
    wilson_lean,
)
from convergence_picks.signals.context import SignalContext

MIN_SEASON_GAMES = 5
MIN_RECENT_GAMES = 3
MIN_VENUE_GAMES = 4
RECENT_GAMES = 5
MIN_CUSHION = 0.04


def _stat_values(ctx: SignalContext, season_only: bool = True) -> list[tuple[PlayerGameLog, float]]:
    """(log, value) pairs for the prop's player and stat, oldest first."""
    prop = require(ctx.prop, "prop")
    logs = [
        log for log in ctx.player_logs
        if log.player_name == prop.player_name
        and prop.stat in log.stats
        and log.game_date < ctx.game.game_date
        and (not season_only or log.season == ctx.game.season)
    ]
    logs.sort(key=lambda log: log.game_date)
    return [(log, float(log.stats[prop.stat])) for log in logs]


def _hits(values: list[float], line: float) -> tuple[int, int]:
    over = sum(1 for v in values if v > line)
    under = sum(1 for v in values if v < line)
    return over, under


def _lean_result(
    category: str,
    lean: float,
    magnitude: float,
    confidence: float,
    label: str,
) -> SignalResult:
    if magnitude < 1 or lean == 0:
        return SignalResult.neutral(category, label)
    return SignalResult(
        category=category,
        direction=Direction.OVER if lean > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=confidence,
        strength=TOTAL_SCALE.classify(magnitude),
        label=label,
    )


@signal("propSeason")
def prop_season_hit_rate(ctx: SignalContext) -> SignalResult:
    prop = require(ctx.prop, "prop")
    values = [v for _, v in _stat_values(ctx)]
    over, under = _hits(values, prop.line)
    if over + under < MIN_SEASON_GAMES:
        raise MissingData(f"{prop.player_name}: {over + under} decided games this season")

    lean = wilson_lean(over, under)
    label = f"{prop.player_name} {prop.stat} over {prop.line:g}: {over}-{under} this season"
    return _lean_result(
        "propSeason",
        lean,
        clamp(abs(lean) * 40, 0, 10),
        clamp(0.3 + (over + under) * 0.02, 0.3, 0.75),
        label,
    )


@signal("propRecent")
def prop_recent_form(ctx: SignalContext) -> SignalResult:
    prop = require(ctx.prop, "prop")
    values = [v for _, v in _stat_values(ctx, season_only=False)][-RECENT_GAMES:]
    over, under = _hits(values, prop.line)
    decided = over + under
    if decided < MIN_RECENT_GAMES:
        raise MissingData(f"{prop.player_name}: {decided} recent decided games")

    lean = over / decided - 0.5
    label = f"{prop.player_name} last {len(values)}: {over}-{under} vs {prop.line:g}"
    return _lean_result("propRecent", lean, clamp(abs(lean) * 20, 0, 10), 0.45, label)


@signal("propVenue")
def prop_venue_split(ctx: SignalContext) -> SignalResult:
    prop = require(ctx.prop, "prop")
    is_home = prop.team == ctx.game.home_team
    values = [v for log, v in _stat_values(ctx) if log.is_home == is_home]
    over, under = _hits(values, prop.line)
    decided = over + under
    if decided < MIN_VENUE_GAMES:
        raise MissingData(f"{prop.player_name}: {decided} decided games at this venue type")

    lean = wilson_lean(over, under)
    venue = "home" if is_home else "away"
    label = f"{prop.player_name} {venue}: {over}-{under} vs {prop.line:g}"
    return _lean_result(
        "propVenue",
        lean,
        clamp(abs(lean) * 40, 0, 10),
        clamp(0.25 + decided * 0.02, 0.25, 0.6),
        label,
    )


@signal("propCushion")
def prop_median_cushion(ctx: SignalContext) -> SignalResult:
    prop = require(ctx.prop, "prop")
    values = [v for _, v in _stat_values(ctx)]
    if len(values) < MIN_SEASON_GAMES:
        raise MissingData(f"{prop.player_name}: {len(values)} games this season")
    if prop.line <= 0:
        raise MissingData("Non-positive prop line")

    mid = median(values)
    cushion = (mid - prop.line) / prop.line
    label = f"{prop.player_name} median {mid:g} vs line {prop.line:g} ({cushion:+.0%})"
    if abs(cushion) < MIN_CUSHION:
        return SignalResult.neutral("propCushion", label)

    return SignalResult(
        category="propCushion",
        direction=Direction.OVER if cushion > 0 else Direction.UNDER,
        magnitude=clamp(abs(cushion) * 25, 0, 10),
        confidence=0.5,
        strength=TOTAL_SCALE.classify(clamp(abs(cushion) * 25, 0, 10)),
        label=label,
        edge=mid - prop.line,
    )
