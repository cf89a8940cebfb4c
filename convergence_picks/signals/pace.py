"""Pace signal for totals: combined tempo against the league average."""

from convergence_picks.signals.base import (
    TOTAL_SCALE,
    Direction,
    SignalResult,
    clamp,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

MIN_TEMPO_GAP = 1.0
# Possessions per magnitude point
TEMPO_PER_POINT = 0.75


@signal("pace")
def pace_signal(ctx: SignalContext) -> SignalResult:
    home = require(ctx.home_snapshot, "home snapshot")
    away = require(ctx.away_snapshot, "away snapshot")
    league = require(ctx.league_tempo, "league tempo")

    avg_tempo = (home.adj_tempo + away.adj_tempo) / 2
    gap = avg_tempo - league
    label = f"Tempo {avg_tempo:.1f} vs league {league:.1f} ({gap:+.1f})"
    if abs(gap) < MIN_TEMPO_GAP:
        return SignalResult.neutral("pace", label)

    # A wide tempo gap makes the combined pace less predictable
    mismatch = abs(home.adj_tempo - away.adj_tempo)
    magnitude = clamp(abs(gap) / TEMPO_PER_POINT, 0, 10)
    confidence = clamp(0.45 - mismatch * 0.02, 0.25, 0.45)
    return SignalResult(
        category="pace",
        direction=Direction.OVER if gap > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=confidence,
        strength=TOTAL_SCALE.classify(magnitude),
        label=label,
        edge=gap,
    )
