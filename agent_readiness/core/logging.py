"""
Structured logging using structlog.
Outputs JSON in production, colored console in development.

Scanner loggers and library loggers (httpx, google_genai, uvicorn) end up on
the same stdout handler: stdlib records pass through ProcessorFormatter with
the same pre-chain, so every line carries request_id, severity and timestamp.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from agent_readiness.core.config import Settings, get_settings

SEVERITY = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "warn": "WARNING",
    "error": "ERROR",
    "exception": "ERROR",
    "critical": "CRITICAL",
}

# httpx logs every request at INFO; target fetches are logged by the engines
ALWAYS_QUIET = ("httpx", "httpcore")
PRODUCTION_QUIET = ("asyncio", "google_genai")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def add_severity(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    """Map structlog levels to GCP/Datadog severity levels."""
    event_dict["severity"] = SEVERITY.get(method, "INFO")
    return event_dict


def _renderers(settings: Settings) -> list[Processor]:
    if settings.LOG_FORMAT == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # Runs for structlog events and, as foreign_pre_chain, for stdlib records
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_severity,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # uvicorn installs its own handlers; hand its records to the root handler
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in ALWAYS_QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
    if settings.ENV == "production":
        for name in PRODUCTION_QUIET:
            logging.getLogger(name).setLevel(logging.WARNING)
