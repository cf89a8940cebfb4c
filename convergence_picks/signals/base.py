"""Signal result types and shared helpers.

Every signal is a pure function ``SignalContext -> SignalResult``. A signal
with nothing to say returns a neutral result (magnitude 0, confidence 0);
signals never raise for missing inputs. Helpers raise ``MissingData`` and
the ``signal`` decorator turns it into the neutral result.
"""

import functools
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from convergence_picks.exceptions import MissingData

if TYPE_CHECKING:
    from convergence_picks.signals.context import SignalContext

# z for a 95% two-sided interval
WILSON_Z = 1.96


class Direction(str, Enum):
    HOME = "home"
    AWAY = "away"
    OVER = "over"
    UNDER = "under"
    NEUTRAL = "neutral"


class Strength(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NOISE = "noise"


@dataclass(frozen=True)
class SignalResult:
    """Output of one signal for one game and market.

    Attributes:
        category: Weight-table key (e.g. "modelEdge", "seasonATS")
        direction: Side the signal favors
        magnitude: How far the evidence leans, 0-10
        confidence: How much to trust it, 0-1
        strength: Bucket derived from magnitude
        label: Short human-readable explanation
        edge: Raw edge behind the signal, when it has one (points or prob.)
    """

    category: str
    direction: Direction
    magnitude: float
    confidence: float
    strength: Strength
    label: str
    edge: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.magnitude <= 10.0:
            raise ValueError(f"{self.category}: magnitude {self.magnitude} outside [0, 10]")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"{self.category}: confidence {self.confidence} outside [0, 1]")
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "strength", Strength(self.strength))

    @property
    def is_active(self) -> bool:
        """Has an opinion: non-neutral direction and positive magnitude."""
        return self.direction != Direction.NEUTRAL and self.magnitude > 0

    @classmethod
    def neutral(
        cls, category: str, label: str = "No data", edge: float | None = None
    ) -> "SignalResult":
        return cls(
            category=category,
            direction=Direction.NEUTRAL,
            magnitude=0.0,
            confidence=0.0,
            strength=Strength.NOISE,
            label=label,
            edge=edge,
        )


@dataclass(frozen=True)
class StrengthScale:
    """Magnitude thresholds for strength buckets."""

    strong: float
    moderate: float
    weak: float

    def classify(self, magnitude: float) -> Strength:
        if magnitude >= self.strong:
            return Strength.STRONG
        if magnitude >= self.moderate:
            return Strength.MODERATE
        if magnitude >= self.weak:
            return Strength.WEAK
        return Strength.NOISE


SPREAD_SCALE = StrengthScale(strong=7.0, moderate=4.0, weak=1.5)
TOTAL_SCALE = StrengthScale(strong=6.0, moderate=3.0, weak=1.0)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def wilson_interval(successes: int, trials: int, z: float = WILSON_Z) -> tuple[float, float]:
    """Wilson score interval for a binomial proportion.

    Small samples get wide intervals, so a 4-1 record does not look as
    convincing as 40-10.

    Args:
        successes: Number of successes
        trials: Number of trials
        z: Normal quantile (1.96 for 95%)

    Returns:
        (lower, upper) bounds; (0.0, 1.0) with no trials

    Example:
        >>> lo, hi = wilson_interval(8, 10)
        >>> round(lo, 3), round(hi, 3)
        (0.49, 0.943)
    """
    if trials <= 0:
        return 0.0, 1.0
    p = successes / trials
    denom = 1 + z * z / trials
    center = p + z * z / (2 * trials)
    spread = z * math.sqrt(p * (1 - p) / trials + z * z / (4 * trials * trials))
    return (center - spread) / denom, (center + spread) / denom


def wilson_lean(successes: int, failures: int) -> float:
    """Two-sided Wilson lean of a record away from 50%.

    Positive when the lower bound of the success rate clears 0.5, negative
    when the lower bound of the failure rate does, 0 for records too short
    or too even to say either. A 5-5 record leans nowhere.
    """
    trials = successes + failures
    if trials == 0:
        return 0.0
    up = wilson_interval(successes, trials)[0] - 0.5
    down = wilson_interval(failures, trials)[0] - 0.5
    return max(up, 0.0) - max(down, 0.0)


def require(value, what: str):
    """Return ``value`` or raise MissingData when it is None."""
    if value is None:
        raise MissingData(f"No {what}")
    return value


SignalFn = Callable[["SignalContext"], SignalResult]


def signal(category: str) -> Callable[[SignalFn], SignalFn]:
    """Mark a function as a signal for ``category``.

    The wrapped function may raise MissingData; the caller then gets the
    neutral result for the category instead.

    Example:
        >>> @signal("rest")
        ... def rest_signal(ctx):
        ...     profile = require(ctx.rest, "rest profile")
        ...     ...
    """

    def decorator(fn: SignalFn) -> SignalFn:
        @functools.wraps(fn)
        def wrapper(ctx: "SignalContext") -> SignalResult:
            try:
                return fn(ctx)
            except MissingData as e:
                return SignalResult.neutral(category, str(e))

        wrapper.category = category
        return wrapper

    return decorator
