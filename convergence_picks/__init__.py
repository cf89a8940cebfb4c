"""Signal convergence pick engine for point spreads, totals and player props."""

__version__ = "0.1.0"
