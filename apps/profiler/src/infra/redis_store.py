"""
Redis-backed behavior store.

This module encapsulates:
- Connection to Redis using global RedisConfig
- The logical document schema (events, sessions, users) mapped onto
  Redis lists, hashes and sets (see infra.keys for the layout)
- Atomic session summary updates (HINCRBY / RPUSH / HSET) guarded by a
  WATCH on the summary key so that absent summaries are never created
  by interaction events
- Structured logging, tracing and metrics around every operation

Redis failures are logged, counted and re-raised as StorageError.
"""

from __future__ import annotations

import json
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Union

import redis

from brokerlib.config import AppConfig
from brokerlib.errors import StorageError
from brokerlib.models.events import Event, SessionEvent, UserAgent
from brokerlib.models.profile import UserProfile, UserRecord
from brokerlib.models.sessions import SESSION_SUMMARY, SessionSummary
from brokerlib.observability import get_logger, get_store_instruments, get_tracer

from apps.profiler.src.infra.keys import StoreKeys

logger = get_logger("profiler.redis_store")
tracer = get_tracer("profiler.redis_store")

_events_recorded, _signals_recorded, _store_failures, _store_latency_ms = (
    get_store_instruments()
)

SessionDocument = Union[SessionSummary, SessionEvent]

_COUNTER_FIELDS = ("events_count", "clicks_buy", "clicks_sell")


class BehaviorStore:
    """
    Document-store facade over redis-py.

    Responsibilities:
    - Append-only event and lifecycle logs per user
    - One session summary per (user_id, session_id)
    - User records with the cached behavioral profile
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        keys: Optional[StoreKeys] = None,
    ) -> None:
        if client is None:
            cfg = AppConfig.load().redis
            client = redis.Redis(
                host=cfg.host,
                port=cfg.port,
                db=cfg.db,
                decode_responses=True,
            )
            logger.info(
                "Initialized BehaviorStore.",
                extra={"host": cfg.host, "port": cfg.port, "db": cfg.db},
            )
        self._client = client
        self._keys = keys or StoreKeys.from_app_config()

    @contextmanager
    def _operation(self, name: str, user_id: str) -> Iterator[None]:
        """
        Wrap a store operation with a span, latency metric and error mapping.
        """
        with tracer.start_as_current_span(f"store.{name}") as span:
            span.set_attribute("store.user_id", user_id)
            start = time.perf_counter()
            try:
                yield
            except redis.RedisError as exc:
                _store_failures.add(1, {"operation": name})
                logger.exception(
                    "Behavior store operation failed.",
                    extra={"operation": name, "user_id": user_id},
                )
                raise StorageError(f"Store operation '{name}' failed") from exc
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                _store_latency_ms.record(duration_ms, {"operation": name})

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            logger.warning("Redis ping failed.")
            return False

    # Events

    def append_event(self, event: Event) -> None:
        with self._operation("append_event", event.user_id):
            self._client.rpush(self._keys.events(event.user_id), event.model_dump_json())
        _events_recorded.add(1, {"type": str(event.type)})

    def list_events(self, user_id: str) -> List[Event]:
        with self._operation("list_events", user_id):
            raw = self._client.lrange(self._keys.events(user_id), 0, -1)
        return [Event.model_validate_json(item) for item in raw]

    # Lifecycle log

    def append_session_event(self, signal: SessionEvent) -> None:
        with self._operation("append_session_event", signal.user_id):
            self._client.rpush(
                self._keys.session_log(signal.user_id),
                signal.model_dump_json(exclude_none=True),
            )
        _signals_recorded.add(1, {"type": str(signal.type)})

    def list_session_events(self, user_id: str) -> List[SessionEvent]:
        with self._operation("list_session_events", user_id):
            raw = self._client.lrange(self._keys.session_log(user_id), 0, -1)
        return [SessionEvent.model_validate_json(item) for item in raw]

    # Session summaries

    def start_summary(self, summary: SessionSummary) -> None:
        """
        Create the summary, or overwrite an existing one with fresh state.
        """
        uid, sid = summary.user_id, summary.session_id
        key = self._keys.summary(uid, sid)
        with self._operation("start_summary", uid):
            pipe = self._client.pipeline(transaction=True)
            pipe.delete(key, self._keys.hovers(uid, sid, "buy"), self._keys.hovers(uid, sid, "sell"))
            pipe.hset(key, mapping=_encode_summary(summary))
            pipe.sadd(self._keys.summary_index(uid), sid)
            pipe.execute()

    def apply_interaction(
        self,
        user_id: str,
        session_id: str,
        *,
        counter: Optional[str],
        hover_target: Optional[str],
        hover_ms: float,
        at: datetime,
    ) -> bool:
        """
        Atomically fold one interaction into an existing summary.

        Args:
            counter: Extra counter to increment ("clicks_buy"/"clicks_sell").
            hover_target: "buy"/"sell" when a hover duration is appended.
            hover_ms: Hover duration to append.
            at: New `last_activity`.

        Returns:
            False when no summary exists for the session (nothing written).
        """
        key = self._keys.summary(user_id, session_id)
        hover_key = self._keys.hovers(user_id, session_id, hover_target) if hover_target else None

        def _apply(pipe: redis.client.Pipeline) -> bool:
            if not pipe.exists(key):
                return False
            pipe.multi()
            pipe.hincrby(key, "events_count", 1)
            if counter:
                pipe.hincrby(key, counter, 1)
            if hover_key:
                pipe.rpush(hover_key, json.dumps(hover_ms))
            pipe.hset(key, "last_activity", at.isoformat())
            return True

        with self._operation("apply_interaction", user_id):
            return self._client.transaction(_apply, key, value_from_callable=True)

    def complete_summary(
        self,
        user_id: str,
        session_id: str,
        *,
        end_time: datetime,
        duration_ms: Optional[float],
    ) -> bool:
        """
        Freeze the summary's end fields.

        Returns:
            False when the summary is absent or already completed.
        """
        key = self._keys.summary(user_id, session_id)

        def _complete(pipe: redis.client.Pipeline) -> bool:
            if not pipe.exists(key) or pipe.hget(key, "completed") == "1":
                return False
            fields: Dict[str, str] = {"end_time": end_time.isoformat(), "completed": "1"}
            if duration_ms is not None:
                fields["duration_ms"] = json.dumps(duration_ms)
            pipe.multi()
            pipe.hset(key, mapping=fields)
            return True

        with self._operation("complete_summary", user_id):
            return self._client.transaction(_complete, key, value_from_callable=True)

    def get_summary(self, user_id: str, session_id: str) -> Optional[SessionSummary]:
        summaries = self._read_summaries(user_id, [session_id])
        return summaries[0] if summaries else None

    def list_summaries(self, user_id: str) -> List[SessionSummary]:
        with self._operation("list_summary_ids", user_id):
            session_ids = sorted(self._client.smembers(self._keys.summary_index(user_id)))
        return self._read_summaries(user_id, session_ids)

    def _read_summaries(self, user_id: str, session_ids: List[str]) -> List[SessionSummary]:
        if not session_ids:
            return []
        with self._operation("read_summaries", user_id):
            pipe = self._client.pipeline(transaction=False)
            for sid in session_ids:
                pipe.hgetall(self._keys.summary(user_id, sid))
                pipe.lrange(self._keys.hovers(user_id, sid, "buy"), 0, -1)
                pipe.lrange(self._keys.hovers(user_id, sid, "sell"), 0, -1)
            raw = pipe.execute()

        out: List[SessionSummary] = []
        for i in range(0, len(raw), 3):
            fields, buys, sells = raw[i], raw[i + 1], raw[i + 2]
            if not fields:
                continue
            out.append(_decode_summary(fields, buys, sells))
        return out

    def list_session_documents(self, user_id: str) -> List[SessionDocument]:
        """
        Every document of the logical `sessions` collection for a user:
        the lifecycle log followed by the summaries.
        """
        docs: List[SessionDocument] = []
        docs.extend(self.list_session_events(user_id))
        docs.extend(self.list_summaries(user_id))
        return docs

    # Reset

    def delete_user_data(self, user_id: str) -> int:
        """
        Delete all events, lifecycle entries and summaries of a user.

        Returns:
            Number of Redis keys removed.
        """
        with self._operation("delete_user_data", user_id):
            session_ids = self._client.smembers(self._keys.summary_index(user_id))
            keys = [
                self._keys.events(user_id),
                self._keys.session_log(user_id),
                self._keys.summary_index(user_id),
            ]
            for sid in session_ids:
                keys.append(self._keys.summary(user_id, sid))
                keys.append(self._keys.hovers(user_id, sid, "buy"))
                keys.append(self._keys.hovers(user_id, sid, "sell"))
            removed = self._client.delete(*keys)

        logger.info(
            "User behavior data deleted.",
            extra={"user_id": user_id, "keys_removed": removed},
        )
        return removed

    # Users

    def upsert_user(self, user: UserRecord) -> None:
        fields = {"id": user.id, "username": user.username, "email": user.email}
        if user.created_at is not None:
            fields["created_at"] = user.created_at.isoformat()
        with self._operation("upsert_user", user.id):
            pipe = self._client.pipeline(transaction=True)
            pipe.hset(self._keys.user(user.id), mapping=fields)
            pipe.sadd(self._keys.users(), user.id)
            pipe.execute()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._operation("get_user", user_id):
            fields = self._client.hgetall(self._keys.user(user_id))
        return _decode_user(fields) if fields else None

    def list_users(self) -> List[UserRecord]:
        with self._operation("list_users", "*"):
            user_ids = sorted(self._client.smembers(self._keys.users()))
            pipe = self._client.pipeline(transaction=False)
            for uid in user_ids:
                pipe.hgetall(self._keys.user(uid))
            raw = pipe.execute() if user_ids else []
        return [_decode_user(fields) for fields in raw if fields]

    def save_profile(self, user_id: str, profile: UserProfile, updated_at: datetime) -> bool:
        """
        Overwrite the cached profile on the user record.

        Returns:
            False when the user record does not exist.
        """
        key = self._keys.user(user_id)
        with self._operation("save_profile", user_id):
            if not self._client.exists(key):
                return False
            self._client.hset(
                key,
                mapping={
                    "profile": profile.model_dump_json(),
                    "profile_updated_at": updated_at.isoformat(),
                },
            )
        return True


def _encode_summary(summary: SessionSummary) -> Dict[str, str]:
    fields: Dict[str, str] = {
        "user_id": summary.user_id,
        "session_id": summary.session_id,
        "type": SESSION_SUMMARY,
        "start_time": summary.start_time.isoformat(),
        "last_activity": summary.last_activity.isoformat(),
        "completed": "1" if summary.completed else "0",
    }
    for name in _COUNTER_FIELDS:
        fields[name] = str(getattr(summary, name))
    if summary.user_agent is not None:
        fields["user_agent"] = summary.user_agent.model_dump_json(exclude_none=True)
    if summary.end_time is not None:
        fields["end_time"] = summary.end_time.isoformat()
    if summary.duration_ms is not None:
        fields["duration_ms"] = json.dumps(summary.duration_ms)
    return fields


def _decode_summary(fields: Dict[str, str], buys: List[str], sells: List[str]) -> SessionSummary:
    return SessionSummary(
        user_id=fields["user_id"],
        session_id=fields["session_id"],
        start_time=fields["start_time"],
        end_time=fields.get("end_time"),
        user_agent=(
            UserAgent.model_validate_json(fields["user_agent"]) if fields.get("user_agent") else None
        ),
        events_count=int(fields.get("events_count", 0)),
        clicks_buy=int(fields.get("clicks_buy", 0)),
        clicks_sell=int(fields.get("clicks_sell", 0)),
        hovers_buy=[json.loads(v) for v in buys],
        hovers_sell=[json.loads(v) for v in sells],
        duration_ms=json.loads(fields["duration_ms"]) if "duration_ms" in fields else None,
        completed=fields.get("completed") == "1",
        last_activity=fields.get("last_activity", fields["start_time"]),
    )


def _decode_user(fields: Dict[str, str]) -> UserRecord:
    return UserRecord(
        id=fields["id"],
        username=fields.get("username", ""),
        email=fields.get("email", ""),
        created_at=fields.get("created_at"),
        profile=(
            UserProfile.model_validate_json(fields["profile"]) if fields.get("profile") else None
        ),
        profile_updated_at=fields.get("profile_updated_at"),
    )
