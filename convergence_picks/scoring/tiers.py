"""Confidence tier mapping: (score, edge) -> reject / 3 / 4 / 5 stars.

Thresholds live in versioned tier tables. Tables are produced offline by
the backtest sweep and registered append-only: a version, once registered,
is never edited, and no context-dependent adjustment is applied at lookup
time. The final tier is the lower of the score tier and, when the table
defines edge thresholds, the edge tier.

Example:
    >>> table = TIER_REGISTRY.get()
    >>> assign_tier(78, 3.1, table.thresholds_for(Sport.NCAAMB, Market.SPREAD))
    4
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from pydantic import BaseModel, ValidationError, model_validator

from convergence_picks.exceptions import InvalidConfiguration
from convergence_picks.ml.data.schema import Market, Sport

REJECT = 0


class EdgeTierThresholds(BaseModel):
    """Minimum |edge| for 3/4/5 stars, non-decreasing."""

    t3: float
    t4: float
    t5: float

    @model_validator(mode="after")
    def check_order(self) -> "EdgeTierThresholds":
        if not 0 <= self.t3 <= self.t4 <= self.t5:
            raise ValueError(f"Edge thresholds must satisfy 0 <= t3 <= t4 <= t5, got {self}")
        return self


class TierThresholds(BaseModel):
    """Score thresholds for 3/4/5 stars plus optional edge thresholds."""

    score_t3: float = 55
    score_t4: float = 70
    score_t5: float = 85
    edge: EdgeTierThresholds | None = None

    @model_validator(mode="after")
    def check_order(self) -> "TierThresholds":
        if not 0 <= self.score_t3 <= self.score_t4 <= self.score_t5 <= 100:
            raise ValueError("Score thresholds must satisfy 0 <= t3 <= t4 <= t5 <= 100")
        return self


def _bucket(value: float, t3: float, t4: float, t5: float) -> int:
    if value >= t5:
        return 5
    if value >= t4:
        return 4
    if value >= t3:
        return 3
    return REJECT


def score_tier(score: float, thresholds: TierThresholds) -> int:
    return _bucket(score, thresholds.score_t3, thresholds.score_t4, thresholds.score_t5)


def edge_tier(edge: float, thresholds: EdgeTierThresholds) -> int:
    return _bucket(abs(edge), thresholds.t3, thresholds.t4, thresholds.t5)


def assign_tier(score: float, edge: float | None, thresholds: TierThresholds) -> int:
    """Tier for a pick: min(score tier, edge tier).

    Without edge thresholds only the score counts. With them, a pick that
    has no edge is rejected.
    """
    tier = score_tier(score, thresholds)
    if thresholds.edge is not None:
        if edge is None:
            return REJECT
        tier = min(tier, edge_tier(edge, thresholds.edge))
    return tier


@dataclass(frozen=True)
class TierTable:
    """One published version of tier thresholds.

    Attributes:
        version: Unique version label
        created: Date the table was produced
        source: What produced it (e.g. the sweep's train/test seasons)
        default: Thresholds for (sport, market) pairs not listed
        overrides: Per (sport, market) thresholds
    """

    version: str
    created: date
    source: str = ""
    default: TierThresholds = field(default_factory=TierThresholds)
    overrides: Mapping[tuple[Sport, Market], TierThresholds] = field(default_factory=dict)

    def thresholds_for(self, sport: Sport | str, market: Market | str) -> TierThresholds:
        return self.overrides.get((Sport(sport), Market(market)), self.default)


def make_tier_table(
    version: str,
    created: date,
    source: str = "",
    default: Mapping | None = None,
    overrides: Mapping[tuple[Sport, Market], Mapping] | None = None,
) -> TierTable:
    """Build a TierTable from plain dicts, validating every threshold set.

    Raises:
        InvalidConfiguration: If any threshold set is malformed
    """
    try:
        default_t = TierThresholds(**(default or {}))
        override_t = {
            (Sport(sport), Market(market)): TierThresholds(**values)
            for (sport, market), values in (overrides or {}).items()
        }
    except (ValidationError, ValueError) as e:
        raise InvalidConfiguration(f"Invalid tier table {version!r}: {e}") from e
    return TierTable(
        version=version,
        created=created,
        source=source,
        default=default_t,
        overrides=override_t,
    )


class TierRegistry:
    """Append-only collection of tier tables."""

    def __init__(self, tables: list[TierTable] | None = None) -> None:
        self._tables: dict[str, TierTable] = {}
        for table in tables or []:
            self.register(table)

    def register(self, table: TierTable) -> None:
        """Add a new version.

        Raises:
            InvalidConfiguration: If the version already exists
        """
        if table.version in self._tables:
            raise InvalidConfiguration(
                f"Tier table {table.version!r} already registered; publish a new version instead."
            )
        self._tables[table.version] = table

    def get(self, version: str | None = None) -> TierTable:
        """Table by version; the most recently registered when empty/None.

        Raises:
            InvalidConfiguration: If the version is unknown or the registry is empty
        """
        if not self._tables:
            raise InvalidConfiguration("No tier tables registered.")
        if not version:
            return next(reversed(self._tables.values()))
        try:
            return self._tables[version]
        except KeyError as e:
            raise InvalidConfiguration(f"Unknown tier table version: {version!r}") from e

    @property
    def versions(self) -> list[str]:
        return list(self._tables)


BASELINE_TIERS = make_tier_table(
    version="baseline-1",
    created=date(2025, 3, 1),
    source="score-only thresholds (85/70/55)",
)

TIER_REGISTRY = TierRegistry([BASELINE_TIERS])
