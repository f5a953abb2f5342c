"""
OpenTelemetry tracing initialization and tracer helper.
"""

from opentelemetry import trace
from opentelemetry.trace import Tracer
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from brokerlib.config import AppConfig
from brokerlib.observability.otlp_exporter import build_resource, build_trace_exporter


def init_tracing() -> None:
    """
    Initialize the global TracerProvider and configure the OTLP span exporter.

    With OTEL disabled the provider is installed without an exporter so spans
    still carry ids for log correlation.
    """
    provider = TracerProvider(resource=build_resource())
    if AppConfig.load().otel.enabled:
        provider.add_span_processor(BatchSpanProcessor(build_trace_exporter()))
    trace.set_tracer_provider(provider)


def get_tracer(name: str | None = None) -> Tracer:
    """
    Get a Tracer instance for the given instrumentation scope.

    Args:
        name: Logical scope name for the tracer. If None, the service name is used.
    """
    scope_name = name or AppConfig.load().otel.service_name
    return trace.get_tracer(scope_name)
