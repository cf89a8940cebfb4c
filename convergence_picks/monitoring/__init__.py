"""Monitoring module for structured logging.

Provides structlog configuration:
- Structured JSON logging for production
- Human-readable console output for development
- Correlation ids for pick runs and backtests
"""

from convergence_picks.monitoring.logging import (
    bind_correlation_id,
    configure_logging,
    get_logger,
    unbind_correlation_id,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "unbind_correlation_id",
]
