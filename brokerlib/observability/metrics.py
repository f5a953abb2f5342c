"""
Metrics initialization and meter provider for OpenTelemetry.

This module initializes a process-wide MeterProvider and exposes
a helper to retrieve the default Meter for the current service.
Until `init_metrics` runs, meters come from the OTel API's proxy provider
and instruments created from them are bound once a provider is set.
"""

from typing import List, Optional

from opentelemetry import metrics
from opentelemetry.metrics import Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader

from brokerlib.config import AppConfig
from brokerlib.observability.otlp_exporter import build_metric_exporter, build_resource

_provider: Optional[MeterProvider] = None


def init_metrics() -> None:
    """
    Initialize the OTel MeterProvider and register an OTLP metric exporter.

    This function is idempotent.
    """
    global _provider

    if _provider is not None:
        return

    readers: List[MetricReader] = []
    if AppConfig.load().otel.enabled:
        readers.append(PeriodicExportingMetricReader(build_metric_exporter()))

    _provider = MeterProvider(resource=build_resource(), metric_readers=readers)
    metrics.set_meter_provider(_provider)


def get_meter() -> Meter:
    """
    Retrieve the default Meter for the current service.
    """
    return metrics.get_meter(AppConfig.load().otel.service_name)
