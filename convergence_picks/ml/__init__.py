"""Modeling and validation for the pick engine.

Submodules:
    solver: Ridge / OLS fit by Gaussian elimination
    data: Schemas, point-in-time snapshot store, game sources, odds helpers
    features: Point-in-time team records, matchup and rest features
    models: RegressionModel and its base class
    training: Season splits, walk-forward folds, model evaluation
    backtesting: Candidate evaluation, grading, tier sweeps and reports
"""
