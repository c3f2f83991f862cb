import logging
import os

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from shared.config.settings import log_level, tracing_enabled


def add_otel_ids(logger, log_method, event_dict):
    """Attach the active span's ids so a log line can be found from its trace."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def _stamp_service(service_name: str):
    def processor(logger, log_method, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict
    return processor


def configure_logging(service_name: str):
    level = getattr(logging, log_level(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _stamp_service(service_name),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str):
    if not tracing_enabled():
        return None

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    exporter = OTLPSpanExporter(endpoint=os.getenv("OTLP_ENDPOINT", "http://localhost:4317"), insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    # Spans for every request, including the ones routed into mounted apps
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
    return provider


def configure_metrics(app: FastAPI):
    # Ungrouped, so 409 and 422 stay distinct from other 4xx
    Instrumentator(
        should_group_status_codes=False,
        excluded_handlers=["/metrics", ".*/health"],
    ).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    """
    Logging, tracing and metrics for the process.

    Call once, on the outermost app: the mounted order and inventory apps
    share its middleware, tracer provider and Prometheus registry.
    """
    configure_logging(service_name)
    configure_tracing(app, service_name)
    configure_metrics(app)
