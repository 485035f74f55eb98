"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

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

SERVICE_NAME = "resort-engine"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
AVAILABILITY_CHECKS = Counter(
    'availability_checks_total',
    'Availability evaluations by outcome',
    ['item_type', 'available'],
    registry=REGISTRY
)

RATE_RESOLUTIONS = Counter(
    'rate_resolutions_total',
    'Rate resolutions by outcome (matched or fallback)',
    ['item_type', 'outcome'],
    registry=REGISTRY
)

QUOTED_PRICE = Histogram(
    'quoted_total_price',
    'Total price of computed quotes',
    ['currency'],
    buckets=(0, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
    registry=REGISTRY
)

ALLOCATIONS_CREATED = Counter(
    'allocations_created_total',
    'Allocations created',
    ['item_type'],
    registry=REGISTRY
)

ALLOCATION_CONFLICTS = Counter(
    'allocation_conflicts_total',
    'Allocation writes rejected because of an overlapping allocation',
    ['item_type', 'operation'],
    registry=REGISTRY
)

STATUS_TRANSITIONS = Counter(
    'allocation_status_transitions_total',
    'Allocation status transitions',
    ['from_status', 'to_status'],
    registry=REGISTRY
)

LOCK_WAIT = Histogram(
    'resource_lock_wait_seconds',
    'Time spent waiting for the per-resource critical section',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    # Request id is bound into contextvars by RequestIDMiddleware
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing; spans are exported only when an OTLP endpoint is set."""
    trace.set_tracer_provider(TracerProvider(resource=_resource()))

    if settings.otlp_endpoint:
        span_processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        trace.get_tracer_provider().add_span_processor(span_processor)

    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics export alongside the Prometheus registry."""
    if settings.otlp_endpoint:
        otlp_exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=otlp_exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the engine's SQLAlchemy sync core with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration_seconds: float):
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration_seconds)

    @staticmethod
    def record_availability_check(item_type: str, available: bool):
        """Record one availability evaluation."""
        AVAILABILITY_CHECKS.labels(item_type=item_type, available=str(available).lower()).inc()

    @staticmethod
    def record_rate_resolution(item_type: str, matched: bool):
        """Record whether a rule was found or the zero-price fallback was used."""
        RATE_RESOLUTIONS.labels(item_type=item_type, outcome="matched" if matched else "fallback").inc()

    @staticmethod
    def record_quote(currency: str, total_price: float):
        QUOTED_PRICE.labels(currency=currency).observe(total_price)

    @staticmethod
    def record_allocation_created(item_type: str):
        ALLOCATIONS_CREATED.labels(item_type=item_type).inc()

    @staticmethod
    def record_allocation_conflict(item_type: str, operation: str):
        """Record a rejected create or reschedule."""
        ALLOCATION_CONFLICTS.labels(item_type=item_type, operation=operation).inc()

    @staticmethod
    def record_status_transition(from_status: str, to_status: str):
        STATUS_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def record_lock_wait(seconds: float):
        LOCK_WAIT.observe(seconds)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
