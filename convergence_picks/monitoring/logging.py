"""Structured logging configuration using structlog.

- JSON output in production mode (filterable, parseable)
- Colored console output in development mode (human-readable)
- Run IDs bound as correlation ids so one pick run or backtest can be traced

Usage:
    from convergence_picks.monitoring import configure_logging, get_logger

    configure_logging("production")  # or "development"
    log = get_logger(__name__)

    log.info("picks_generated", sport="NFL", count=7)
    log.warning("snapshot_missing", team="Duke", as_of="2025-01-12")
"""

import logging
import sys

import structlog


def configure_logging(mode: str = "development") -> None:
    """Configure structlog for the engine.

    Args:
        mode: Either "production" (JSON output) or "development" (colored console)
    """
    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if mode == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (usually ``__name__``)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Bind a run id to the current context.

    All subsequent log events in this context include ``correlation_id``.

    Args:
        correlation_id: Unique identifier for this run (e.g. "picks-NFL-2025-01-12")
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def unbind_correlation_id() -> None:
    """Remove the run id from context once the run completes."""
    structlog.contextvars.unbind_contextvars("correlation_id")
