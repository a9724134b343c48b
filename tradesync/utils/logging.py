"""Structured logging setup for tradesync.

Uses structlog for JSON-structured logging with cycle IDs,
component names, and timestamps in every log entry.
"""

import logging
from typing import ContextManager

import structlog


def configure_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog for the tradesync engine.

    Args:
        json_output: If True (default), render logs as JSON.
                     If False, use console-friendly output for development.
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.BoundLogger:
    """Get a logger bound with a component name.

    The cycle_id comes from cycle_context() via contextvars.
    """
    return structlog.get_logger().bind(component=component)


def cycle_context(cycle_id: str) -> ContextManager[None]:
    """Bind cycle_id into structlog contextvars for the duration of a cycle.

    Every module-level logger then carries the cycle_id through the
    merge_contextvars processor, not just loggers from get_logger().
    """
    return structlog.contextvars.bound_contextvars(cycle_id=cycle_id)
