"""
Observability bootstrap utilities for logging, tracing, and metrics.

This module provides:
- a unified initialization entrypoint (`init_observability`)
- stable metric instruments for the behavior store and the classifier
"""

import logging
from typing import Tuple

from opentelemetry.metrics import Counter, Histogram

from brokerlib.observability.logging import init_logging
from brokerlib.observability.metrics import get_meter, init_metrics
from brokerlib.observability.tracing import init_tracing


def init_observability(level: int = logging.INFO) -> None:
    """
    Initialize logging, tracing, and metrics for the current service.

    This should typically be called once during service startup.

    Args:
        level: Logging verbosity level for the root logger.
    """
    init_logging(level=level)
    init_tracing()
    init_metrics()


def get_store_instruments() -> Tuple[Counter, Counter, Counter, Histogram]:
    """
    Create OpenTelemetry instruments for the behavior store.

    Returns:
        A tuple containing:
            events_counter: Counter for persisted interaction events.
            signals_counter: Counter for persisted lifecycle signals.
            failure_counter: Counter for failed store operations.
            latency_histogram: Histogram for store operation latency (ms).
    """
    meter = get_meter()

    events: Counter = meter.create_counter(
        name="behavior_events_recorded",
        description="Count of persisted click/hover events",
        unit="1",
    )

    signals: Counter = meter.create_counter(
        name="behavior_session_signals_recorded",
        description="Count of persisted session lifecycle signals",
        unit="1",
    )

    failures: Counter = meter.create_counter(
        name="behavior_store_failures",
        description="Count of failed behavior store operations",
        unit="1",
    )

    latency: Histogram = meter.create_histogram(
        name="behavior_store_latency_ms",
        description="Behavior store operation latency in milliseconds",
        unit="ms",
    )

    return events, signals, failures, latency


def get_classifier_instruments() -> Tuple[Counter, Counter, Histogram]:
    """
    Create OpenTelemetry instruments for profile classification.

    Returns:
        A tuple containing:
            classified_counter: Counter for successful classifications.
            fallback_counter: Counter for fallback profiles served.
            latency_histogram: Histogram for classifier call latency (ms).
    """
    meter = get_meter()

    classified: Counter = meter.create_counter(
        name="profile_classifications",
        description="Count of profiles returned by the classifier",
        unit="1",
    )

    fallbacks: Counter = meter.create_counter(
        name="profile_classifier_fallbacks",
        description="Count of fallback profiles served after classifier errors",
        unit="1",
    )

    latency: Histogram = meter.create_histogram(
        name="profile_classifier_latency_ms",
        description="Classifier round-trip latency in milliseconds",
        unit="ms",
    )

    return classified, fallbacks, latency
