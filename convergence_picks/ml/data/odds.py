"""Odds conversion and vig removal.

Converts American odds to decimal and strips the bookmaker margin so a
moneyline can be compared against a model probability.

Uses the margin-proportional method:
1. Convert decimal odds to implied probabilities
2. Sum total probability (will be > 1.0 due to vig/margin)
3. Divide each implied probability by the total (fair probs sum to 1.0)

Example:
    Standard -110/-110 line (1.909 decimal each):
    - Implied probs: [0.5238, 0.5238] = 104.76% (4.76% vig)
    - Fair probs: [0.50, 0.50]
"""


def american_to_decimal(american_odds: int | float) -> float:
    """Convert American odds to decimal odds.

    Args:
        american_odds: American format odds (e.g., +200, -150, +100)

    Returns:
        Decimal odds (always >= 1.0)

    Raises:
        ValueError: If odds are 0 or strictly between -100 and +100

    Examples:
        >>> american_to_decimal(200)
        3.0
        >>> american_to_decimal(-200)
        1.5
        >>> american_to_decimal(-110)
        1.9090909090909092
    """
    if -100 < american_odds < 100:
        raise ValueError(f"Invalid American odds: {american_odds}")
    if american_odds > 0:
        return (american_odds / 100) + 1
    return (100 / abs(american_odds)) + 1


def remove_vig(decimal_odds_list: list[float]) -> tuple[list[float], list[float]]:
    """Remove bookmaker vig using the margin-proportional method.

    Args:
        decimal_odds_list: Decimal odds for all outcomes in a market

    Returns:
        Tuple of (fair_odds_list, fair_probs_list)

    Raises:
        ValueError: If fewer than 2 outcomes or any odds <= 0

    Example:
        >>> fair_odds, fair_probs = remove_vig([1.909, 1.909])
        >>> fair_probs
        [0.5, 0.5]
    """
    _validate(decimal_odds_list)
    implied_probs = [1.0 / odds for odds in decimal_odds_list]
    total_prob = sum(implied_probs)
    fair_probs = [prob / total_prob for prob in implied_probs]
    fair_odds = [1.0 / prob for prob in fair_probs]
    return fair_odds, fair_probs


def get_market_vig(decimal_odds_list: list[float]) -> float:
    """Vig percentage for a market (e.g. 4.76 for -110/-110)."""
    _validate(decimal_odds_list)
    return (sum(1.0 / odds for odds in decimal_odds_list) - 1.0) * 100


def fair_moneyline_probs(home_moneyline: int, away_moneyline: int) -> tuple[float, float]:
    """De-vigged (home, away) win probabilities from a two-way moneyline."""
    _, probs = remove_vig([american_to_decimal(home_moneyline), american_to_decimal(away_moneyline)])
    return probs[0], probs[1]


def _validate(decimal_odds_list: list[float]) -> None:
    if len(decimal_odds_list) < 2:
        raise ValueError(
            "Need at least 2 outcomes to calculate vig. "
            f"Got {len(decimal_odds_list)} outcome(s)."
        )
    for i, odds in enumerate(decimal_odds_list):
        if odds <= 0:
            raise ValueError(f"Decimal odds must be positive. Got {odds} at position {i}.")
