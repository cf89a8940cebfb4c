"""Typed failures raised by the pick engine.

Only ``MissingData`` is expected during normal operation and it never
escapes a signal: the signal wrapper converts it into a neutral result.
Everything else is a fail-fast condition for the caller.
"""

from datetime import date


class PickEngineError(Exception):
    """Base class for all pick engine errors."""


class MissingData(PickEngineError):
    """A signal's required input is absent.

    Resolved locally by degrading the signal to neutral.
    """


class InvalidConfiguration(PickEngineError):
    """Malformed weight table, tier table, model or backtest configuration."""


class InvalidInput(PickEngineError, ValueError):
    """Solver input has the wrong shape (ragged rows, too few rows)."""


class InsufficientTrainingData(PickEngineError):
    """Too few training rows or evaluated picks for a trustworthy result.

    Attributes:
        count: Number of rows/picks actually available
        required: Minimum number that was needed
    """

    def __init__(self, count: int, required: int, what: str = "rows") -> None:
        self.count = count
        self.required = required
        self.what = what
        super().__init__(
            f"Insufficient training data: {count} {what}, need at least {required}."
        )


class LookaheadViolation(PickEngineError, AssertionError):
    """A point-in-time lookup returned data dated after the requested date.

    Any accuracy number computed after this fires is invalid, so it is
    never caught by the engine itself.
    """

    def __init__(self, team: str, requested: date, returned: date) -> None:
        self.team = team
        self.requested = requested
        self.returned = returned
        super().__init__(
            f"Look-ahead violation for {team}: requested as of {requested}, "
            f"got snapshot dated {returned}."
        )
