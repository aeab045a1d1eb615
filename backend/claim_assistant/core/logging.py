"""
Structured logging via structlog.

All application log entries share the same fields:
  timestamp, level, logger, event, thread_id, tool, gate, reason, ...

Usage:
    from claim_assistant.core.logging import get_logger
    log = get_logger(__name__)
    log.info("run_complete", thread_id=thread_id, steps=3)
"""

import logging
import sys

import structlog
from claim_assistant.core.config import get_settings


def configure_logging() -> None:
    """
    Configure structlog processors. Call once at application startup.
    Development: pretty colored output.
    Production:  JSON output (machine-readable for cloud logging).
    """
    settings = get_settings()
    is_dev = settings.environment == "development"

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_dev:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if is_dev else logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
