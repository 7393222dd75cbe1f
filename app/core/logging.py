"""Logging configuration using structlog.

Request-scoped fields (request id, interaction id) are bound through
``structlog.contextvars`` so every collector and client log line emitted while
serving a request carries them.
"""

import logging
import sys

import structlog

from app.core.config import Settings, get_settings

# Third-party loggers that log every outbound request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "PIL")


def _add_service_name(service_name: str):
    def processor(_logger, _method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and stdlib logging for the service."""
    active = settings or get_settings()
    log_level = getattr(logging, active.app.log_level.value)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    renderer = (
        structlog.processors.JSONRenderer()
        if active.observability.log_record_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_service_name(active.observability.service_name),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**fields: str) -> None:
    """Bind fields to every log line for the rest of the current request."""
    structlog.contextvars.bind_contextvars(**{k: v for k, v in fields.items() if v})


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
