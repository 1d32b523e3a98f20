"""Observability setup: Prometheus metrics, OpenTelemetry and structured logging."""

import logging
import sys

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "hotel-booking-api"
SERVICE_VERSION = "1.0.0"

# Dedicated registry so tests can build several apps in one process
REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    registry=REGISTRY
)

BOOKINGS_CREATED = Counter(
    "bookings_created_total",
    "Total bookings created",
    ["hotel_id"],
    registry=REGISTRY
)

BOOKINGS_CANCELLED = Counter(
    "bookings_cancelled_total",
    "Total bookings cancelled",
    registry=REGISTRY
)

BOOKING_CONFLICTS = Counter(
    "booking_conflicts_total",
    "Booking attempts rejected because the room-number was taken",
    registry=REGISTRY
)

ROOMS_CLEANED = Counter(
    "rooms_cleaned_total",
    "Total room cleanings recorded",
    registry=REGISTRY
)


def _add_trace_context(logger, method_name, event_dict):
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def setup_structured_logging():
    """
    Route stdlib and structlog output through one structlog formatter.

    Service modules log with ``logging.getLogger(__name__)`` and pass context
    in ``extra``; ``ExtraAdder`` lifts those fields into the rendered event,
    and the request ID bound by the middleware is merged from contextvars.
    """
    level = getattr(logging, settings.log_level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        _add_trace_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)


def _resource(app_name: str) -> Resource:
    return Resource.create({
        "service.name": app_name,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing; spans are exported only when an OTLP endpoint is set."""
    provider = TracerProvider(resource=_resource(app_name))
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry metrics export alongside the Prometheus registry."""
    if settings.otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=settings.otlp_endpoint),
            export_interval_millis=60000
        )
        metrics.set_meter_provider(MeterProvider(resource=_resource(app_name), metric_readers=[reader]))
    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the async engine's sync core with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_booking_created(hotel_id: str):
        """Record a booking creation."""
        BOOKINGS_CREATED.labels(hotel_id=hotel_id).inc()

    @staticmethod
    def record_booking_cancelled():
        """Record a booking cancellation."""
        BOOKINGS_CANCELLED.inc()

    @staticmethod
    def record_booking_conflict():
        """Record a booking rejected for overlapping dates."""
        BOOKING_CONFLICTS.inc()

    @staticmethod
    def record_room_cleaned():
        """Record a room cleaning."""
        ROOMS_CLEANED.inc()


def get_prometheus_metrics() -> bytes:
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
