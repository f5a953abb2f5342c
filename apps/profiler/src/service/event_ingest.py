"""
Event ingest: validate and persist a single click/hover event, then fold it
into the session summary.
"""

from __future__ import annotations

import numbers
from typing import Any, Optional

from brokerlib.errors import ValidationError
from brokerlib.models.events import TARGET_BUY, TARGET_SELL, Event, EventType
from brokerlib.observability import get_logger, get_tracer

from apps.profiler.src.infra.keys import utc_now
from apps.profiler.src.infra.redis_store import BehaviorStore

_CLICK_COUNTERS = {TARGET_BUY: "clicks_buy", TARGET_SELL: "clicks_sell"}


def _required(name: str, value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"'{name}' is required")
    return str(value)


def _hover_ms(value: Any) -> float:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError("'hover_ms' must be a number")
    return value


class EventIngestService:
    """
    Records raw interaction events.

    The event is always stored. The summary update is skipped (not an
    error) when the session id is the frontend's placeholder or when no
    summary exists for it.
    """

    def __init__(self, store: BehaviorStore, unknown_session_id: str = "unknown-session") -> None:
        self._store = store
        self._unknown_session_id = unknown_session_id
        self._log = get_logger("profiler.event_ingest")
        self._tracer = get_tracer("profiler.event_ingest")

    def record_event(
        self,
        user_id: str,
        session_id: Optional[str],
        event_type: Optional[str],
        target: Optional[str],
        hover_ms: Any = None,
    ) -> Event:
        """
        Validate, persist and fold one event into its session summary.

        Raises:
            ValidationError: missing session_id/type/target, unknown type or
                non-numeric hover_ms. Nothing is persisted.
            StorageError: the store failed.
        """
        session_id = _required("session_id", session_id)
        event_type = _required("type", event_type)
        target = _required("target", target)
        if event_type not in (EventType.CLICK.value, EventType.HOVER.value):
            raise ValidationError(f"unsupported event type '{event_type}'")
        duration = _hover_ms(hover_ms)

        event = Event(
            user_id=user_id,
            session_id=session_id,
            type=event_type,
            target=target,
            hover_ms=duration,
            timestamp=utc_now(),
        )

        with self._tracer.start_as_current_span("record_event") as span:
            span.set_attribute("event.type", event_type)
            span.set_attribute("event.target", target)
            self._store.append_event(event)
            applied = self._update_summary(event)
            span.set_attribute("summary.updated", applied)

        self._log.debug(
            "Event recorded.",
            extra={
                "user_id": user_id,
                "session_id": session_id,
                "type": event_type,
                "target": target,
                "summary_updated": applied,
            },
        )
        return event

    def _update_summary(self, event: Event) -> bool:
        if event.session_id == self._unknown_session_id:
            return False

        counter: Optional[str] = None
        hover_target: Optional[str] = None
        if event.type == EventType.CLICK:
            counter = _CLICK_COUNTERS.get(event.target)
        elif event.type == EventType.HOVER and event.hover_ms > 0:
            if event.target in _CLICK_COUNTERS:
                hover_target = event.target

        return self._store.apply_interaction(
            event.user_id,
            event.session_id,
            counter=counter,
            hover_target=hover_target,
            hover_ms=event.hover_ms,
            at=event.timestamp,
        )
