"""CLI package for the pick engine.

Provides pick generation, backtests and Elo rebuilds from CSV files.
"""

from convergence_picks.cli.main import cli

__all__ = ["cli"]
