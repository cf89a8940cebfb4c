"""Trend-angle signals for spread and total.

Each team's situational angles are graded by sample size and Wilson lean,
then vote for a side with weight 3 (strong), 2 (moderate) or 1 (weak).
Noise angles do not vote.
"""

from collections.abc import Callable

from convergence_picks.ml.features.trend_angles import TrendAngle
from convergence_picks.signals.base import (
    SPREAD_SCALE,
    TOTAL_SCALE,
    Direction,
    SignalResult,
    Strength,
    clamp,
    require,
    signal,
    wilson_lean,
)
from convergence_picks.signals.context import SignalContext

MIN_ANGLE_GAMES = 5
STRONG_ANGLE_GAMES = 10
STRONG_ANGLE_LEAN = 0.15
WEAK_ANGLE_RATE = 0.6

VOTE_WEIGHTS = {Strength.STRONG: 3, Strength.MODERATE: 2, Strength.WEAK: 1, Strength.NOISE: 0}


def grade_angle_record(successes: int, failures: int) -> Strength:
    """Strength of one angle's record.

    Under 5 decided games is noise. A Wilson lean of 0.15 or more over at
    least 10 games is strong, any nonzero lean is moderate, and a raw rate
    of 60% either way is weak.

    Example:
        >>> grade_angle_record(8, 0)
        <Strength.MODERATE: 'moderate'>
    """
    trials = successes + failures
    if trials < MIN_ANGLE_GAMES:
        return Strength.NOISE
    lean = wilson_lean(successes, failures)
    if abs(lean) >= STRONG_ANGLE_LEAN and trials >= STRONG_ANGLE_GAMES:
        return Strength.STRONG
    if lean != 0:
        return Strength.MODERATE
    if max(successes, failures) / trials >= WEAK_ANGLE_RATE:
        return Strength.WEAK
    return Strength.NOISE


def _tally(
    angles: list[TrendAngle],
    vote: Callable[[TrendAngle], tuple[int, int, Direction]],
) -> tuple[dict[Direction, int], dict[Direction, int], int]:
    """Weighted votes, voting-angle counts per side, and significant count."""
    scores: dict[Direction, int] = {}
    counts: dict[Direction, int] = {}
    significant = 0
    for angle in angles:
        successes, failures, favors = vote(angle)
        strength = grade_angle_record(successes, failures)
        weight = VOTE_WEIGHTS[strength]
        if weight == 0:
            continue
        scores[favors] = scores.get(favors, 0) + weight
        counts[favors] = counts.get(favors, 0) + 1
        if strength in (Strength.STRONG, Strength.MODERATE):
            significant += 1
    return scores, counts, significant


def _all_angles(ctx: SignalContext) -> list[TrendAngle]:
    home = require(ctx.home_angles, "home trend angles")
    away = require(ctx.away_angles, "away trend angles")
    return [*home, *away]


def _ats_vote(angle: TrendAngle) -> tuple[int, int, Direction]:
    team_side = Direction(angle.side)
    other = Direction.AWAY if team_side == Direction.HOME else Direction.HOME
    favors = team_side if angle.ats_covered > angle.ats_lost else other
    return angle.ats_covered, angle.ats_lost, favors


def _ou_vote(angle: TrendAngle) -> tuple[int, int, Direction]:
    favors = Direction.OVER if angle.overs > angle.unders else Direction.UNDER
    return angle.overs, angle.unders, favors


@signal("trendAngles")
def trend_angles_spread(ctx: SignalContext) -> SignalResult:
    angles = _all_angles(ctx)
    if not angles:
        return SignalResult.neutral("trendAngles", "No trend angles")

    scores, counts, significant = _tally(angles, _ats_vote)
    home, away = scores.get(Direction.HOME, 0), scores.get(Direction.AWAY, 0)
    if home + away == 0:
        return SignalResult.neutral("trendAngles", "All trend angles are noise")

    n_home, n_away = counts.get(Direction.HOME, 0), counts.get(Direction.AWAY, 0)
    label = f"{n_home + n_away} angles: {n_home} home, {n_away} away ({significant} significant)"
    if home == away:
        return SignalResult.neutral("trendAngles", label)

    magnitude = clamp(abs(home - away) / (home + away) * 10 + significant * 0.5, 0, 10)
    return SignalResult(
        category="trendAngles",
        direction=Direction.HOME if home > away else Direction.AWAY,
        magnitude=magnitude,
        confidence=clamp(0.4 + significant * 0.08, 0.4, 0.9),
        strength=SPREAD_SCALE.classify(magnitude),
        label=label,
    )


@signal("trendAngles")
def trend_angles_total(ctx: SignalContext) -> SignalResult:
    angles = _all_angles(ctx)
    if not angles:
        return SignalResult.neutral("trendAngles", "No O/U trend angles")

    scores, counts, significant = _tally(angles, _ou_vote)
    over, under = scores.get(Direction.OVER, 0), scores.get(Direction.UNDER, 0)
    if over + under == 0:
        return SignalResult.neutral("trendAngles", "All O/U angles are noise")

    label = (
        f"O/U angles: {counts.get(Direction.OVER, 0)} over, "
        f"{counts.get(Direction.UNDER, 0)} under ({significant} sig)"
    )
    if over == under:
        return SignalResult.neutral("trendAngles", label)

    magnitude = clamp(abs(over - under) / (over + under) * 10 + significant * 0.5, 0, 10)
    return SignalResult(
        category="trendAngles",
        direction=Direction.OVER if over > under else Direction.UNDER,
        magnitude=magnitude,
        confidence=clamp(0.35 + significant * 0.08, 0.35, 0.85),
        strength=TOTAL_SCALE.classify(magnitude),
        label=label,
    )
