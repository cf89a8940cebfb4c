"""Signal weight tables per sport and market.

A category missing from a table gets the fallback weight (0.1 by default)
rather than zero, so a newly added signal still has some influence. A
category listed with weight 0 is switched off explicitly.
"""

import math
from collections.abc import Mapping

from convergence_picks.exceptions import InvalidConfiguration
from convergence_picks.ml.data.schema import Market, Sport

DEFAULT_FALLBACK_WEIGHT = 0.1


class WeightTable:
    """Immutable category -> weight mapping.

    Attributes:
        weights: Category weights as given
        fallback: Weight for categories not in ``weights``

    Example:
        >>> table = WeightTable({"modelEdge": 0.3, "seasonATS": 0.15})
        >>> table.get("h2h")
        0.1
    """

    def __init__(
        self,
        weights: Mapping[str, float],
        fallback: float = DEFAULT_FALLBACK_WEIGHT,
    ) -> None:
        """Validate and store the table.

        Raises:
            InvalidConfiguration: If a weight or the fallback is negative or
                not finite, or no weight is positive
        """
        for category, weight in weights.items():
            if not isinstance(weight, (int, float)) or not math.isfinite(weight) or weight < 0:
                raise InvalidConfiguration(f"Invalid weight for {category!r}: {weight!r}")
        if not math.isfinite(fallback) or fallback < 0:
            raise InvalidConfiguration(f"Invalid fallback weight: {fallback!r}")
        if weights and not any(w > 0 for w in weights.values()):
            raise InvalidConfiguration("Weight table has no positive weight.")

        self._weights = dict(weights)
        self._fallback = float(fallback)

    @property
    def weights(self) -> dict[str, float]:
        return dict(self._weights)

    @property
    def fallback(self) -> float:
        return self._fallback

    def get(self, category: str) -> float:
        return self._weights.get(category, self._fallback)

    def __contains__(self, category: object) -> bool:
        return category in self._weights

    def __repr__(self) -> str:
        return f"WeightTable({self._weights}, fallback={self._fallback})"


_NFL_SPREAD = {
    "modelEdge": 0.15,
    "seasonATS": 0.10,
    "trendAngles": 0.25,
    "recentForm": 0.15,
    "h2h": 0.05,
    "situational": 0.10,
    "rest": 0.05,
    "marketEdge": 0.05,
    "eloEdge": 0.10,
}

_NFL_TOTAL = {
    "modelEdge": 0.20,
    "seasonOU": 0.15,
    "trendAngles": 0.20,
    "recentForm": 0.10,
    "h2h": 0.10,
    "weather": 0.15,
    "pace": 0.10,
}

_PROP = {
    "propSeason": 0.35,
    "propRecent": 0.25,
    "propVenue": 0.15,
    "propCushion": 0.25,
}

DEFAULT_WEIGHTS: dict[tuple[Sport, Market], dict[str, float]] = {
    (Sport.NCAAMB, Market.SPREAD): {
        "modelEdge": 0.25,
        "seasonATS": 0.10,
        "trendAngles": 0.25,
        "recentForm": 0.10,
        "h2h": 0.05,
        "situational": 0.05,
        "rest": 0.05,
        "marketEdge": 0.05,
        "eloEdge": 0.10,
    },
    (Sport.NBA, Market.SPREAD): {
        "modelEdge": 0.20,
        "seasonATS": 0.10,
        "trendAngles": 0.25,
        "recentForm": 0.10,
        "h2h": 0.05,
        "situational": 0.0,
        "rest": 0.15,
        "marketEdge": 0.05,
        "eloEdge": 0.10,
    },
    (Sport.NFL, Market.SPREAD): _NFL_SPREAD,
    (Sport.NCAAF, Market.SPREAD): dict(_NFL_SPREAD),
    (Sport.NCAAMB, Market.TOTAL): {
        "modelEdge": 0.40,
        "seasonOU": 0.10,
        "trendAngles": 0.20,
        "recentForm": 0.10,
        "h2h": 0.10,
        "pace": 0.10,
        "weather": 0.0,
    },
    (Sport.NBA, Market.TOTAL): {
        "modelEdge": 0.30,
        "seasonOU": 0.10,
        "trendAngles": 0.20,
        "recentForm": 0.10,
        "h2h": 0.05,
        "pace": 0.25,
        "weather": 0.0,
    },
    (Sport.NFL, Market.TOTAL): _NFL_TOTAL,
    (Sport.NCAAF, Market.TOTAL): dict(_NFL_TOTAL),
}
for _sport in Sport:
    DEFAULT_WEIGHTS[(_sport, Market.PROP)] = dict(_PROP)


def default_weight_table(
    sport: Sport | str,
    market: Market | str,
    fallback: float = DEFAULT_FALLBACK_WEIGHT,
) -> WeightTable:
    """Built-in weight table for a sport and market.

    Raises:
        InvalidConfiguration: If the sport or market is unknown
    """
    try:
        weights = DEFAULT_WEIGHTS[(Sport(sport), Market(market))]
    except (KeyError, ValueError) as e:
        raise InvalidConfiguration(f"No weight table for {sport}/{market}") from e
    return WeightTable(weights, fallback=fallback)
