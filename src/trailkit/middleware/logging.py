"""Structured logging configuration with structlog.

Request handlers and services log through ``structlog.get_logger()``; the
repositories and the dispatcher use ``logging.getLogger(__name__)``. Both
end up on the root handler at the level resolved here.
"""

import logging

import structlog

from trailkit.config import Settings

SERVICE_NAME = "trailkit"


def resolve_log_level(level: str | None, environment: str) -> int:
    """Explicit level wins; otherwise DEBUG outside production."""
    if level and level.strip():
        name = level.strip().upper()
    else:
        name = "INFO" if environment.lower() == "production" else "DEBUG"
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def service_context(environment: str) -> structlog.types.Processor:
    """Processor stamping every event with the service name and environment."""

    def add_service(_logger: object, _method: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_service


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON or console output and tag every event with the service."""
    level = resolve_log_level(settings.log_level, settings.environment)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            service_context(settings.environment),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level)
    logging.getLogger("trailkit").setLevel(level)
