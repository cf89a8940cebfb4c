"""One-line pick summaries, phrased by tier."""

from collections.abc import Sequence

from convergence_picks.signals.base import Direction, SignalResult, Strength


def _agreeing(signals: Sequence[SignalResult], direction: Direction) -> list[SignalResult]:
    return [s for s in signals if s.direction == direction and s.strength != Strength.NOISE]


def _model_edge(signals: Sequence[SignalResult], direction: Direction) -> SignalResult | None:
    for s in signals:
        if s.category == "modelEdge" and s.direction == direction:
            return s
    return None


def spread_headline(
    team: str,
    spread: float,
    tier: int,
    signals: Sequence[SignalResult],
    direction: Direction,
) -> str:
    """Headline for a spread pick.

    Args:
        team: Team picked
        spread: Line from that team's side
        tier: Star tier
        signals: All signals scored for the pick
        direction: Chosen side
    """
    line = f"{spread:+g}"
    model = _model_edge(signals, direction)
    agreeing = _agreeing(signals, direction)

    if tier >= 5:
        if model is not None and model.magnitude >= 5 and model.edge is not None:
            return (
                f"{len(agreeing)} signals align, model sees {abs(model.edge):.1f} pts "
                f"of value on {team}"
            )
        return f"Strong convergence: {len(agreeing)} independent edges favor {team} {line}"

    if tier >= 4:
        if model is not None and model.magnitude >= 3 and model.edge is not None:
            return f"Model edge: {team} has {abs(model.edge):.1f} pts of line value"
        if len(agreeing) >= 3:
            return f"{len(agreeing)} signals favor {team} {line}"
        return f"ATS advantage backs {team} {line}"

    if len(agreeing) >= 2:
        return f"{len(agreeing)} factors lean {team} {line}"
    return f"Slight lean: {team} {line}"


def total_headline(
    side: str,
    total: float,
    tier: int,
    signals: Sequence[SignalResult],
    direction: Direction,
) -> str:
    """Headline for an over/under pick (``side`` is "Over" or "Under")."""
    model = _model_edge(signals, direction)
    agreeing = _agreeing(signals, direction)

    if tier >= 5 and model is not None and model.magnitude >= 4 and model.edge is not None:
        projected = total + model.edge
        return (
            f"Model projects {projected:.1f} total, {abs(model.edge):.1f} pts "
            f"toward the {side.lower()} ({total:g})"
        )

    if tier >= 4:
        weather = next(
            (s for s in signals if s.category == "weather" and s.direction == direction), None
        )
        if weather is not None and weather.magnitude >= 3:
            return f"Weather and trend data favor {side} {total:g}"
        return f"{len(agreeing)} signals favor {side} {total:g}"

    return f"Lean: {side} {total:g}"


def prop_headline(
    player: str,
    stat: str,
    side: str,
    line: float,
    signals: Sequence[SignalResult],
    direction: Direction,
) -> str:
    season = next(
        (s for s in signals if s.category == "propSeason" and s.direction == direction), None
    )
    if season is not None:
        return f"{player} {side} {line:g} {stat}: {season.label.split(': ', 1)[-1]}"
    return f"{len(_agreeing(signals, direction))} signals favor {player} {side} {line:g} {stat}"
