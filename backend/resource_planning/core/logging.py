"""structlog setup shared by the API and the seed command."""

import logging

import structlog
from opentelemetry import trace

from .config import Settings

# Per-statement and per-request chatter stays at WARNING unless asked for
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def add_trace_context(logger, method_name, event_dict):
    """Attach the active OpenTelemetry span ids so log lines join up with traces."""
    context = trace.get_current_span().get_span_context()
    if context.is_valid:
        event_dict["trace_id"] = format(context.trace_id, "032x")
        event_dict["span_id"] = format(context.span_id, "016x")
    return event_dict


def service_context(settings: Settings):
    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("env", settings.env)
        return event_dict

    return add_service


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            service_context(settings),
            add_trace_context,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    logging.basicConfig(level=level, format="%(name)s %(levelname)s %(message)s")
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
