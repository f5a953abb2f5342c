"""
Factory functions for OTLP exporters (gRPC logging, metrics, trace) and
the shared OTel resource.
"""

import os
from typing import Dict, Optional

from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.semconv.attributes.service_attributes import SERVICE_NAME

from brokerlib.config import AppConfig

DEFAULT_HEADERS: Optional[str] = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")


def build_resource() -> Resource:
    """
    Build the OTel resource (service name + `k=v,k=v` resource attributes).
    """
    cfg = AppConfig.load().otel
    attrs: Dict[str, str] = {
        kv.split("=", 1)[0]: kv.split("=", 1)[1]
        for kv in cfg.resource_attributes.split(",")
        if "=" in kv
    }
    return Resource.create({SERVICE_NAME: cfg.service_name, **attrs})


def _common_kwargs() -> Dict[str, object]:
    """
    Build common keyword arguments for all OTLP exporters.

    Returns:
        A dictionary containing endpoint, headers and insecure flag.
    """
    headers: Optional[Dict[str, str]] = (
        dict(h.split("=", 1) for h in DEFAULT_HEADERS.split(","))
        if DEFAULT_HEADERS
        else None
    )

    return {
        "endpoint": AppConfig.load().otel.otlp_endpoint,
        "headers": headers,
        "insecure": True,
    }


def build_trace_exporter() -> OTLPSpanExporter:
    return OTLPSpanExporter(**_common_kwargs())


def build_metric_exporter() -> OTLPMetricExporter:
    return OTLPMetricExporter(**_common_kwargs())


def build_log_exporter() -> OTLPLogExporter:
    return OTLPLogExporter(**_common_kwargs())
