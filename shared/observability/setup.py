import logging

import structlog
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_fastapi_instrumentator import Instrumentator

from shared.config import settings


def add_otel_ids(logger, log_method, event_dict):
    """Stamp the active trace and span ids so log lines join up with traces."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def add_service_name(service_name: str):
    def processor(logger, log_method, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict
    return processor


def configure_logging(service_name: str):
    level = logging.getLevelName(settings.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_otel_ids,
            add_service_name(service_name),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str):
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
    )
    trace.set_tracer_provider(provider)
    # One server span per request
    FastAPIInstrumentor.instrument_app(app)


def configure_metrics(app: FastAPI):
    # HTTP latency and status histograms, plus /metrics for the scraper
    Instrumentator(excluded_handlers=["/metrics", "/health"]).instrument(app).expose(
        app, include_in_schema=False
    )


def setup_observability(app: FastAPI, service_name: str):
    """
    Wire JSON logging, Prometheus metrics and (when TRACING_ENABLED) OTLP
    tracing into the app. Call once, before the app starts serving.
    """
    configure_logging(service_name)
    if settings.TRACING_ENABLED:
        configure_tracing(app, service_name)
    configure_metrics(app)
