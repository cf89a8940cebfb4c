"""Grading engine: settle pending picks against final games.

Pure functions with no side effects. Spread and total picks grade from the
game's settled outcome, so a spread pick on a game whose spread settled as
a push is always a PUSH. Prop picks grade from the player's box score.

Example:
    >>> graded = grade_picks(pending, settled_games, player_logs)
    >>> [g.result for g in graded]
    [<PickResult.WIN: 'WIN'>, <PickResult.PUSH: 'PUSH'>]
"""

from collections.abc import Iterable

from convergence_picks.ml.data.schema import (
    GameRecord,
    Market,
    PlayerGameLog,
    SpreadResult,
    TotalResult,
)
from convergence_picks.picks.models import GradedPick, Pick, PickResult
from convergence_picks.signals.base import Direction

_HOME_SPREAD = {
    SpreadResult.COVERED: PickResult.WIN,
    SpreadResult.LOST: PickResult.LOSS,
    SpreadResult.PUSH: PickResult.PUSH,
}
_AWAY_SPREAD = {
    SpreadResult.COVERED: PickResult.LOSS,
    SpreadResult.LOST: PickResult.WIN,
    SpreadResult.PUSH: PickResult.PUSH,
}
_OVER = {
    TotalResult.OVER: PickResult.WIN,
    TotalResult.UNDER: PickResult.LOSS,
    TotalResult.PUSH: PickResult.PUSH,
}
_UNDER = {
    TotalResult.OVER: PickResult.LOSS,
    TotalResult.UNDER: PickResult.WIN,
    TotalResult.PUSH: PickResult.PUSH,
}


def grade_game_pick(pick: Pick, game: GameRecord) -> tuple[PickResult, float | None]:
    """Result of a spread or total pick against its game.

    Returns:
        (result, actual value); PENDING when the game is not settled yet.
        The actual value is the margin from the picked side for spreads and
        total points for totals.
    """
    game = game.settled()
    if pick.market == Market.SPREAD:
        if game.spread_result is None:
            return PickResult.PENDING, None
        if pick.side == Direction.HOME:
            return _HOME_SPREAD[game.spread_result], game.score_difference
        return _AWAY_SPREAD[game.spread_result], -game.score_difference

    if pick.market == Market.TOTAL:
        if game.total_result is None:
            return PickResult.PENDING, None
        table = _OVER if pick.side == Direction.OVER else _UNDER
        return table[game.total_result], game.total_points

    raise ValueError(f"Not a game pick: {pick.market.value}")


def grade_prop_pick(pick: Pick, logs: Iterable[PlayerGameLog]) -> tuple[PickResult, float | None]:
    """Result of a prop pick from the player's log on the game date.

    An over wins when the stat beats the line and an under wins when it
    falls short; anything else loses. No log, or a log without the stat,
    leaves the pick PENDING.
    """
    for log in logs:
        if log.player_name != pick.player_name or log.game_date != pick.game_date:
            continue
        actual = log.stats.get(pick.prop_stat)
        if actual is None:
            return PickResult.PENDING, None
        actual = float(actual)
        if pick.side == Direction.UNDER:
            hit = actual < pick.line
        else:
            hit = actual > pick.line
        return (PickResult.WIN if hit else PickResult.LOSS), actual
    return PickResult.PENDING, None


def grade_picks(
    pending: Iterable[Pick],
    settled_games: Iterable[GameRecord],
    player_logs: Iterable[PlayerGameLog] = (),
) -> list[GradedPick]:
    """Grade every pending pick whose game (or box score) is available.

    Already-graded picks and picks whose game is not final are skipped;
    they are not part of the output.

    Args:
        pending: Picks to grade
        settled_games: Final games, matched to picks by game_id
        player_logs: Box scores for prop picks

    Returns:
        One GradedPick per pick that reached WIN, LOSS or PUSH
    """
    games = {g.game_id: g for g in settled_games if g.is_final}
    logs = list(player_logs)
    graded = []

    for pick in pending:
        if not pick.is_pending:
            continue
        if pick.market == Market.PROP:
            result, actual = grade_prop_pick(pick, logs)
        else:
            game = games.get(pick.game_id)
            if game is None:
                continue
            result, actual = grade_game_pick(pick, game)
        if result == PickResult.PENDING:
            continue
        graded.append(GradedPick(pick=pick.with_result(result), actual_value=actual))

    return graded


def calculate_bet_profit(stake: float, american_odds: int, result: PickResult | str) -> float | None:
    """Profit of a settled bet at American odds.

    Returns:
        None while PENDING, 0 for a PUSH, ``-stake`` for a LOSS, and for a
        WIN ``stake × odds/100`` (plus odds) or ``stake × 100/|odds|``
        (minus odds), rounded to cents

    Example:
        >>> calculate_bet_profit(110, -110, "WIN")
        100.0
    """
    result = PickResult(result)
    if result == PickResult.PENDING:
        return None
    if result == PickResult.PUSH:
        return 0.0
    if result == PickResult.WIN:
        mult = american_odds / 100 if american_odds >= 100 else 100 / abs(american_odds)
        return round(stake * mult, 2)
    return -stake
