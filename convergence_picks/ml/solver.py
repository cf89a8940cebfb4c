"""Ridge / ordinary least squares solver.

Solves the normal equations for a linear model with an unpenalized
intercept:

    (XᵗX + λ·I') β = Xᵗy,  where I' is the identity with I'[0, 0] = 0

The (p+1)×(p+1) system is reduced with Gauss-Jordan elimination and
partial pivoting. A column whose best available pivot is smaller than
``PIVOT_EPS`` in magnitude is skipped and its coefficient resolves to 0
instead of raising. This is a numerical stability trade-off, not a
rank-deficiency diagnostic: callers that care about collinearity should
inspect ``RidgeFit.degenerate``.

Example:
    >>> X = [[1.0], [2.0], [3.0]]
    >>> y = [3.0, 5.0, 7.0]
    >>> fit = fit_ridge(X, y)
    >>> round(fit.intercept, 6), [round(c, 6) for c in fit.coefficients]
    (1.0, [2.0])
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from convergence_picks.exceptions import InvalidInput

PIVOT_EPS = 1e-12


@dataclass(frozen=True)
class RidgeFit:
    """Result of a ridge/OLS fit.

    Attributes:
        intercept: Bias term (never penalized)
        coefficients: One coefficient per input column
        degenerate: Indices of columns whose pivot fell below PIVOT_EPS
    """

    intercept: float
    coefficients: tuple[float, ...]
    degenerate: tuple[int, ...] = ()


def _as_matrix(X: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    if isinstance(X, np.ndarray):
        if X.ndim != 2:
            raise InvalidInput(f"Design matrix must be 2-D, got {X.ndim}-D.")
        return X.astype(float)

    rows = [list(row) for row in X]
    if not rows:
        raise InvalidInput("Design matrix has no rows.")
    width = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != width:
            raise InvalidInput(
                f"Ragged design matrix: row 0 has {width} columns, row {i} has {len(row)}."
            )
    return np.array(rows, dtype=float).reshape(len(rows), width)


def fit_ridge(
    X: Sequence[Sequence[float]] | np.ndarray,
    y: Sequence[float] | np.ndarray,
    lam: float = 0.0,
) -> RidgeFit:
    """Fit a linear model by ridge regression (OLS when ``lam == 0``).

    Args:
        X: n×p design matrix (rows are observations)
        y: Target vector of length n
        lam: Ridge penalty λ ≥ 0, not applied to the intercept

    Returns:
        RidgeFit with intercept and p coefficients

    Raises:
        InvalidInput: If rows are ragged, y length differs from n,
            n < p + 1, or λ is negative
    """
    A = _as_matrix(X)
    target = np.asarray(y, dtype=float).ravel()
    n, p = A.shape

    if target.shape[0] != n:
        raise InvalidInput(f"Target has {target.shape[0]} values for {n} rows.")
    if n < p + 1:
        raise InvalidInput(f"Need at least {p + 1} rows to fit {p} features, got {n}.")
    if lam < 0:
        raise InvalidInput(f"Ridge penalty must be non-negative, got {lam}.")

    Xa = np.hstack([np.ones((n, 1)), A])
    pp = p + 1

    xtx = Xa.T @ Xa
    xty = Xa.T @ target
    penalty = np.full(pp, lam)
    penalty[0] = 0.0
    xtx = xtx + np.diag(penalty)

    beta, degenerate = _gauss_jordan(xtx, xty)

    return RidgeFit(
        intercept=float(beta[0]),
        coefficients=tuple(float(b) for b in beta[1:]),
        degenerate=tuple(i - 1 for i in degenerate if i > 0),
    )


def _gauss_jordan(M: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, list[int]]:
    """Solve M·x = b with partial pivoting.

    Columns with a pivot below PIVOT_EPS are skipped and resolve to 0.

    Returns:
        Tuple of (solution vector, indices of skipped columns)
    """
    size = M.shape[0]
    aug = np.hstack([M.astype(float), b.reshape(-1, 1).astype(float)])
    skipped: list[int] = []

    for col in range(size):
        pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
        if pivot_row != col:
            aug[[col, pivot_row]] = aug[[pivot_row, col]]

        pivot = aug[col, col]
        if abs(pivot) < PIVOT_EPS:
            skipped.append(col)
            continue

        aug[col] = aug[col] / pivot
        for row in range(size):
            if row == col:
                continue
            factor = aug[row, col]
            if factor != 0.0:
                aug[row] = aug[row] - factor * aug[col]

    solution = aug[:, size].copy()
    # A skipped row was never normalized; its right-hand side is not a coefficient.
    for col in skipped:
        solution[col] = 0.0
    return solution, skipped
