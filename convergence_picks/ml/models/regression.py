"""Linear regression model backing the model-edge signal.

Wraps the ridge solver with named features, a recorded training window and
joblib persistence. A fitted model never changes: ``fit`` returns a new
instance, and the coefficients are exposed read-only.

Example:
    >>> model = RegressionModel(["sum_oe", "sum_de", "avg_tempo"], ridge_lambda=10.0)
    >>> fitted = model.fit(train_df[model.feature_names], train_df["total_points"])
    >>> fitted.predict_one({"sum_oe": 224.1, "sum_de": 201.7, "avg_tempo": 67.9})
    141.8...
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path

import joblib
import numpy as np
import pandas as pd

from convergence_picks.exceptions import InsufficientTrainingData, InvalidConfiguration
from convergence_picks.ml.models.base import BasePredictionModel
from convergence_picks.ml.solver import fit_ridge
from convergence_picks.monitoring import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class TrainingWindow:
    """Span of data a model was fitted on.

    Attributes:
        start: Earliest game date in the training rows (None if unknown)
        end: Latest game date in the training rows (None if unknown)
        rows: Number of rows used after dropping incomplete ones
    """

    start: date | None
    end: date | None
    rows: int


class RegressionModel(BasePredictionModel):
    """Ridge-regularized linear model over named features.

    Attributes:
        feature_names: Ordered feature columns
        ridge_lambda: Ridge penalty (0 = OLS)
        intercept: Fitted bias (None until fitted)
        coefficients: Fitted coefficients aligned with feature_names
        training_window: Span of the training data (None until fitted)
    """

    def __init__(
        self,
        feature_names: list[str],
        ridge_lambda: float = 0.0,
        intercept: float | None = None,
        coefficients: tuple[float, ...] | None = None,
        training_window: TrainingWindow | None = None,
    ) -> None:
        """Initialize an unfitted (or restored) model.

        Raises:
            InvalidConfiguration: If feature names are empty or duplicated,
                λ is negative, or the coefficient count does not match the
                feature count
        """
        if not feature_names:
            raise InvalidConfiguration("RegressionModel needs at least one feature.")
        if len(set(feature_names)) != len(feature_names):
            raise InvalidConfiguration(f"Duplicate feature names: {feature_names}")
        if ridge_lambda < 0:
            raise InvalidConfiguration(f"ridge_lambda must be >= 0, got {ridge_lambda}")
        if coefficients is not None and len(coefficients) != len(feature_names):
            raise InvalidConfiguration(
                f"{len(coefficients)} coefficients for {len(feature_names)} features."
            )
        if (coefficients is None) != (intercept is None):
            raise InvalidConfiguration("Intercept and coefficients must be set together.")

        self._feature_names = tuple(feature_names)
        self._ridge_lambda = float(ridge_lambda)
        self._intercept = intercept
        self._coefficients = tuple(coefficients) if coefficients is not None else None
        self._training_window = training_window

    @property
    def feature_names(self) -> list[str]:
        return list(self._feature_names)

    @property
    def ridge_lambda(self) -> float:
        return self._ridge_lambda

    @property
    def intercept(self) -> float | None:
        return self._intercept

    @property
    def coefficients(self) -> tuple[float, ...] | None:
        return self._coefficients

    @property
    def training_window(self) -> TrainingWindow | None:
        return self._training_window

    @property
    def is_fitted(self) -> bool:
        return self._coefficients is not None

    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        game_dates: pd.Series | None = None,
    ) -> "RegressionModel":
        """Fit on historical rows and return a new, fitted model.

        Rows with a missing feature or target are dropped first.

        Args:
            X: DataFrame containing at least ``feature_names``
            y: Target aligned with X
            game_dates: Optional dates aligned with X, recorded as the
                training window

        Returns:
            New fitted RegressionModel

        Raises:
            InvalidConfiguration: If X lacks a feature column
            InsufficientTrainingData: If fewer than len(features) + 1 complete
                rows remain
        """
        self._check_columns(X)
        frame = X[list(self._feature_names)].copy()
        frame["__target__"] = np.asarray(y, dtype=float)
        if game_dates is not None:
            frame["__date__"] = list(game_dates)
        frame = frame.dropna(subset=[*self._feature_names, "__target__"])

        required = len(self._feature_names) + 1
        if len(frame) < required:
            raise InsufficientTrainingData(len(frame), required)

        result = fit_ridge(
            frame[list(self._feature_names)].to_numpy(dtype=float),
            frame["__target__"].to_numpy(dtype=float),
            lam=self._ridge_lambda,
        )
        if result.degenerate:
            log.warning(
                "degenerate_features",
                features=[self._feature_names[i] for i in result.degenerate],
            )

        window = TrainingWindow(
            start=min(frame["__date__"]) if "__date__" in frame else None,
            end=max(frame["__date__"]) if "__date__" in frame else None,
            rows=len(frame),
        )

        return RegressionModel(
            feature_names=list(self._feature_names),
            ridge_lambda=self._ridge_lambda,
            intercept=result.intercept,
            coefficients=result.coefficients,
            training_window=window,
        )

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predict one value per row.

        Raises:
            RuntimeError: If the model is not fitted
            InvalidConfiguration: If X lacks a feature column
        """
        if not self.is_fitted:
            raise RuntimeError("Model not fitted. Call fit() first.")
        self._check_columns(X)
        values = X[list(self._feature_names)].to_numpy(dtype=float)
        return values @ np.asarray(self._coefficients) + self._intercept

    def predict_one(self, features: dict[str, float]) -> float:
        """Predict a single row given as a feature dict."""
        return float(self.predict(pd.DataFrame([features]))[0])

    def save(self, path: str) -> None:
        """Save model to ``{path}.joblib``.

        Raises:
            RuntimeError: If the model is not fitted
        """
        if not self.is_fitted:
            raise RuntimeError("Cannot save unfitted model.")
        base = Path(path)
        base.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(
            {
                "feature_names": list(self._feature_names),
                "ridge_lambda": self._ridge_lambda,
                "intercept": self._intercept,
                "coefficients": list(self._coefficients),
                "training_window": self._training_window,
            },
            str(base) + ".joblib",
        )

    @classmethod
    def load(cls, path: str) -> "RegressionModel":
        """Load a model saved with ``save``.

        Raises:
            FileNotFoundError: If the model file does not exist
        """
        model_path = Path(str(path) + ".joblib")
        if not model_path.exists():
            raise FileNotFoundError(f"Model file not found: {model_path}")
        payload = joblib.load(model_path)
        return cls(
            feature_names=payload["feature_names"],
            ridge_lambda=payload["ridge_lambda"],
            intercept=payload["intercept"],
            coefficients=tuple(payload["coefficients"]),
            training_window=payload["training_window"],
        )

    def _check_columns(self, X: pd.DataFrame) -> None:
        missing = [f for f in self._feature_names if f not in X.columns]
        if missing:
            raise InvalidConfiguration(f"Feature columns missing from input: {missing}")

    def __repr__(self) -> str:
        if not self.is_fitted:
            return f"RegressionModel(features={list(self._feature_names)}, unfitted)"
        terms = ", ".join(
            f"{name}={coef:.4f}" for name, coef in zip(self._feature_names, self._coefficients)
        )
        return f"RegressionModel(intercept={self._intercept:.4f}, {terms}, λ={self._ridge_lambda})"
