"""Base model interface for point-prediction models.

Every model used by the model-edge signal implements this interface so the
pick generator and the backtest harness can fit, predict and persist models
without knowing which one they hold.
"""

from abc import ABC, abstractmethod

import numpy as np
import pandas as pd


class BasePredictionModel(ABC):
    """Abstract base class for models that predict a numeric game quantity.

    Defines the contract:
    - fit(): Train on a feature frame and target
    - predict(): Predicted value (e.g. total points) per row
    - save()/load(): Model persistence

    Fitted models are treated as immutable: refitting produces a new model.
    """

    @abstractmethod
    def fit(self, X: pd.DataFrame, y: pd.Series) -> "BasePredictionModel":
        """Train on historical rows.

        Args:
            X: Feature DataFrame with one row per game
            y: Target Series aligned with X

        Returns:
            A fitted model
        """

    @abstractmethod
    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Return one prediction per row of X."""

    @abstractmethod
    def save(self, path: str) -> None:
        """Save model to disk."""

    @classmethod
    @abstractmethod
    def load(cls, path: str) -> "BasePredictionModel":
        """Load model from disk."""
