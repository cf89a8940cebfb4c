"""Convergence scorer: many signals in, one (score, direction) out.

Scoring steps:
1. Active signals are those with a direction and positive magnitude
2. Each signal contributes ``weight × magnitude × confidence`` to its direction
3. The direction with the largest sum wins (first seen wins a tie)
4. ``raw = (best - others) / Σ(weight × 10)`` over ALL supplied signals,
   so weighted-but-silent categories dilute the score
5. ``score = 50 + raw × 80``
6. Agreement bonus: +8 if ≥80% of ≥3 active signals agree, +4 if ≥60%
7. Disagreement penalty: -10 for ≥2 strong/moderate opposing signals, -5 for 1
8. Evidence bonus: +6 for ≥3 strong/moderate agreeing signals, +3 for 2
9. Round half up and clamp to [0, 100]

With fewer active signals than ``min_active`` the score is exactly 50 and
there is no direction.

Example:
    >>> result = score_convergence(signals, WeightTable({"modelEdge": 0.3}))
    >>> result.score, result.direction
    (85, <Direction.HOME: 'home'>)
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from convergence_picks.scoring.weights import WeightTable
from convergence_picks.signals.base import Direction, SignalResult, Strength

NEUTRAL_SCORE = 50
DEFAULT_MIN_ACTIVE = 3

_SIGNIFICANT = (Strength.STRONG, Strength.MODERATE)


@dataclass(frozen=True)
class ReasoningEntry:
    """One line of a pick's explanation.

    Attributes:
        text: Signal label, prefixed ``[OPPOSING] `` when it disagrees
        weight: round(magnitude × confidence × 10)
        strength: Signal strength bucket
        category: Signal category
        agrees: Whether the signal favors the chosen direction
    """

    text: str
    weight: int
    strength: Strength
    category: str
    agrees: bool


@dataclass(frozen=True)
class ConvergenceResult:
    """Scorer output.

    Attributes:
        score: Integer confidence score 0-100
        direction: Chosen side (NEUTRAL when there was not enough evidence)
        reasons: Non-noise active signals, agreeing first, strongest first
        raw_strength: Dominance of the chosen side before bonuses
        active_count / agreeing_count: Active signals, and those agreeing
    """

    score: int
    direction: Direction
    reasons: tuple[ReasoningEntry, ...] = field(default=())
    raw_strength: float = 0.0
    active_count: int = 0
    agreeing_count: int = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_convergence(
    signals: Sequence[SignalResult],
    weights: WeightTable | Mapping[str, float],
    min_active: int = DEFAULT_MIN_ACTIVE,
) -> ConvergenceResult:
    """Combine signals into one score and direction.

    Args:
        signals: Every signal computed for one game and market
        weights: WeightTable, or a plain mapping (wrapped with the default fallback)
        min_active: Active signals required to score away from 50

    Returns:
        ConvergenceResult
    """
    table = weights if isinstance(weights, WeightTable) else WeightTable(weights)
    active = [s for s in signals if s.is_active]

    if not active or len(active) < min_active:
        return ConvergenceResult(
            score=NEUTRAL_SCORE,
            direction=Direction.NEUTRAL,
            active_count=len(active),
        )

    sums: dict[Direction, float] = {}
    total_possible = 0.0
    for s in signals:
        w = table.get(s.category)
        total_possible += w * 10
        if s.is_active:
            sums[s.direction] = sums.get(s.direction, 0.0) + w * s.magnitude * s.confidence

    best_dir = active[0].direction
    best_sum = 0.0
    for direction, total in sums.items():
        if total > best_sum:
            best_dir, best_sum = direction, total
    others = sum(sums.values()) - best_sum

    raw = (best_sum - others) / total_possible if total_possible > 0 else 0.0
    score = NEUTRAL_SCORE + raw * 80

    agreeing = [s for s in active if s.direction == best_dir]
    ratio = len(agreeing) / len(active)
    if len(active) >= 3:
        if ratio >= 0.8:
            score += 8
        elif ratio >= 0.6:
            score += 4

    opposing_significant = sum(
        1 for s in active if s.direction != best_dir and s.strength in _SIGNIFICANT
    )
    if opposing_significant >= 2:
        score -= 10
    elif opposing_significant == 1:
        score -= 5

    agreeing_significant = sum(1 for s in agreeing if s.strength in _SIGNIFICANT)
    if agreeing_significant >= 3:
        score += 6
    elif agreeing_significant >= 2:
        score += 3

    return ConvergenceResult(
        score=max(0, min(100, _round_half_up(score))),
        direction=best_dir,
        reasons=_build_reasons(active, best_dir),
        raw_strength=raw,
        active_count=len(active),
        agreeing_count=len(agreeing),
    )


def _build_reasons(active: list[SignalResult], best_dir: Direction) -> tuple[ReasoningEntry, ...]:
    ranked = sorted(
        (s for s in active if s.strength != Strength.NOISE),
        key=lambda s: (s.direction != best_dir, -(s.magnitude * s.confidence)),
    )
    return tuple(
        ReasoningEntry(
            text=s.label if s.direction == best_dir else f"[OPPOSING] {s.label}",
            weight=_round_half_up(s.magnitude * s.confidence * 10),
            strength=s.strength,
            category=s.category,
            agrees=s.direction == best_dir,
        )
        for s in ranked
    )
