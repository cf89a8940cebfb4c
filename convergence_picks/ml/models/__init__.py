"""Prediction models backing the model-edge signal.

Example:
    >>> from convergence_picks.ml.models import RegressionModel
    >>> model = RegressionModel(["sum_oe", "sum_de", "avg_tempo"], ridge_lambda=10.0)
    >>> fitted = model.fit(X_train, y_train)
    >>> fitted.predict(X_test)
"""

from convergence_picks.ml.models.base import BasePredictionModel
from convergence_picks.ml.models.regression import RegressionModel, TrainingWindow

__all__ = ["BasePredictionModel", "RegressionModel", "TrainingWindow"]
