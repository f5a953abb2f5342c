"""
Session lifecycle tracking.

Per (user_id, session_id) the summary moves absent -> active -> completed:

- session_start   upserts a zeroed summary. A repeated start overwrites the
                  existing summary (counters back to zero).
- session_end     freezes end_time / duration_ms / completed. Ignored when
                  the summary is absent or already completed.
- session_pause / session_resume are kept in the audit log only.

Every accepted signal is appended to the lifecycle log first.
"""

from __future__ import annotations

import numbers
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from brokerlib.errors import ValidationError
from brokerlib.models.events import SessionEvent, SessionSignalType
from brokerlib.models.sessions import SessionSummary
from brokerlib.observability import get_logger, get_tracer

from apps.profiler.src.infra.keys import utc_now
from apps.profiler.src.infra.redis_store import BehaviorStore

# Payload keys owned by the server.
_RESERVED = ("user_id", "session_id", "type")


class SessionTracker:
    def __init__(self, store: BehaviorStore) -> None:
        self._store = store
        self._log = get_logger("profiler.session_tracker")
        self._tracer = get_tracer("profiler.session_tracker")

    def record_session_signal(
        self,
        user_id: str,
        session_id: Optional[str],
        signal_type: Optional[str],
        payload: Optional[Mapping[str, Any]] = None,
    ) -> SessionEvent:
        """
        Log a lifecycle signal and apply its effect on the session summary.

        Args:
            payload: Client body; may carry `timestamp`, `user_agent`,
                `total_session_duration` and arbitrary extra fields.

        Raises:
            ValidationError: missing/unknown signal type or malformed payload.
            StorageError: the store failed.
        """
        signal = self._build_signal(user_id, session_id, signal_type, payload or {})

        with self._tracer.start_as_current_span("record_session_signal") as span:
            span.set_attribute("session.signal", signal.type)
            self._store.append_session_event(signal)

            if signal.session_id:
                if signal.type == SessionSignalType.SESSION_START:
                    self._start(signal)
                elif signal.type == SessionSignalType.SESSION_END:
                    self._end(signal)

        return signal

    def _build_signal(
        self,
        user_id: str,
        session_id: Optional[str],
        signal_type: Optional[str],
        payload: Mapping[str, Any],
    ) -> SessionEvent:
        if not signal_type:
            raise ValidationError("Session event type required")
        valid = {t.value for t in SessionSignalType}
        if signal_type not in valid:
            raise ValidationError(f"unsupported session event type '{signal_type}'")

        duration = payload.get("total_session_duration")
        if duration is not None and (
            isinstance(duration, bool) or not isinstance(duration, numbers.Real)
        ):
            raise ValidationError("'total_session_duration' must be a number")

        body: Dict[str, Any] = {k: v for k, v in payload.items() if k not in _RESERVED}
        body["timestamp"] = payload.get("timestamp") or utc_now()
        try:
            return SessionEvent(
                user_id=user_id,
                session_id=session_id or None,
                type=signal_type,
                **body,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid session event: {exc.errors()[0]['msg']}") from exc

    def _start(self, signal: SessionEvent) -> None:
        summary = SessionSummary(
            user_id=signal.user_id,
            session_id=signal.session_id,
            start_time=signal.timestamp,
            user_agent=signal.user_agent,
            last_activity=signal.timestamp,
        )
        self._store.start_summary(summary)
        self._log.info(
            "Session started.",
            extra={"user_id": signal.user_id, "session_id": signal.session_id},
        )

    def _end(self, signal: SessionEvent) -> None:
        completed = self._store.complete_summary(
            signal.user_id,
            signal.session_id,
            end_time=signal.timestamp,
            duration_ms=signal.total_session_duration,
        )
        self._log.info(
            "Session ended.",
            extra={
                "user_id": signal.user_id,
                "session_id": signal.session_id,
                "duration_ms": signal.total_session_duration,
                "summary_completed": completed,
            },
        )
