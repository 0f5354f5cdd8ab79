"""Template Notifications Observability - Structured logging configuration."""
from __future__ import annotations

import logging
from typing import Any, Callable

import structlog

from .config import TemplateNotificationsConfig


def configure_logging(config: TemplateNotificationsConfig) -> None:
    """Configure structured logging with structlog."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service_context(config.service.name, config.service.env.value),
    ]
    if config.observability.log_format == "json" or config.is_production():
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.service.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _add_service_context(service_name: str, environment: str) -> Callable[..., Any]:
    """Processor to add service context to logs."""
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict
    return processor
