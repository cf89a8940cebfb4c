"""Head-to-head signals for the spread and total markets."""

from convergence_picks.exceptions import MissingData
from convergence_picks.signals.base import (
    Direction,
    SignalResult,
    StrengthScale,
    clamp,
    require,
    signal,
    wilson_lean,
)
from convergence_picks.signals.context import SignalContext

MIN_MEETINGS = 3
MIN_OU_MEETINGS = 5
H2H_SCALE = StrengthScale(strong=6.0, moderate=3.0, weak=0.0)


@signal("h2h")
def h2h_spread(ctx: SignalContext) -> SignalResult:
    h2h = require(ctx.h2h, "head-to-head history")
    if h2h.games < MIN_MEETINGS:
        raise MissingData(f"H2H: {h2h.games} games (insufficient)")
    if h2h.ats_decided < MIN_MEETINGS:
        raise MissingData("H2H ATS data insufficient")

    edge = wilson_lean(h2h.home_ats_covered, h2h.home_ats_lost)
    magnitude = clamp(abs(edge) * 40, 0, 10)
    pct = round(h2h.home_ats_covered / h2h.ats_decided * 100)
    label = f"H2H ATS: {h2h.home_ats_covered}-{h2h.home_ats_lost} ({pct}%) in {h2h.ats_decided} games"
    if magnitude < 0.5:
        return SignalResult.neutral("h2h", label)

    return SignalResult(
        category="h2h",
        direction=Direction.HOME if edge > 0 else Direction.AWAY,
        magnitude=magnitude,
        confidence=clamp(0.3 + h2h.ats_decided * 0.03, 0.3, 0.7),
        strength=H2H_SCALE.classify(magnitude),
        label=label,
    )


@signal("h2h")
def h2h_total(ctx: SignalContext) -> SignalResult:
    """Average meeting total versus the line, plus a lopsided O/U record.

    When the two parts disagree the average-total part sets the direction.
    """
    h2h = require(ctx.h2h, "head-to-head history")
    total = require(ctx.game.total, "total")
    if h2h.games < MIN_MEETINGS or h2h.avg_total_points <= 0:
        raise MissingData(f"H2H: {h2h.games} games (insufficient)")

    magnitude = 0.0
    confidence = 0.4
    direction = Direction.NEUTRAL
    parts = []

    diff = h2h.avg_total_points - total
    if abs(diff) >= 3:
        magnitude += clamp(abs(diff) / 2, 0, 6)
        direction = Direction.OVER if diff > 0 else Direction.UNDER
        confidence = 0.5
        parts.append(f"H2H avg {h2h.avg_total_points:.1f} vs line {total:g} ({diff:+.1f})")

    decided = h2h.overs + h2h.unders
    if decided >= MIN_OU_MEETINGS:
        over_pct = h2h.overs / decided
        if abs(over_pct - 0.5) > 0.15:
            record_dir = Direction.OVER if over_pct > 0.5 else Direction.UNDER
            if direction in (Direction.NEUTRAL, record_dir):
                magnitude += 2
                direction = record_dir
            parts.append(f"H2H O/U: {h2h.overs}-{h2h.unders}")

    magnitude = clamp(magnitude, 0, 10)
    if direction == Direction.NEUTRAL or magnitude < 1:
        return SignalResult.neutral("h2h", " | ".join(parts) or "No H2H total lean")

    return SignalResult(
        category="h2h",
        direction=direction,
        magnitude=magnitude,
        confidence=confidence,
        strength=H2H_SCALE.classify(magnitude),
        label=" | ".join(parts),
        edge=diff,
    )
