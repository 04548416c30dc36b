"""Observability setup for s3-facade.

Logging goes through structlog on top of the stdlib ``logging`` module so that
botocore's own loggers and ours end up on the same stream. Tracing uses the
OpenTelemetry API; until ``setup_tracing`` installs a provider every span is a
no-op.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)

from .config import settings

# botocore and urllib3 log every request at DEBUG, including signed headers.
SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def setup_tracing(
    exporter: Optional[SpanExporter] = None,
) -> Optional[TracerProvider]:
    """Install a tracer provider when tracing is enabled.

    Args:
        exporter: Span exporter to use; spans are printed to the console
            when omitted

    Returns:
        The installed provider, or None when tracing is disabled
    """
    if not settings.otel_enabled:
        return None

    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter or ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def setup_logging() -> None:
    """Set up structured logging with structlog."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )
    sdk_level = getattr(logging, settings.sdk_log_level.upper())
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    if settings.log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a logger instance."""
    return structlog.get_logger(name)


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer from the global provider."""
    return trace.get_tracer(name)


# Initialize on import
setup_logging()
setup_tracing()
