"""
Profile orchestration.

Reads a user's history from the behavior store, aggregates features and
asks the classifier for an archetype. The classifier never fails a
request: any ClassifierError degrades to the fallback profile, which is
returned but not persisted.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import List, Optional

from brokerlib.errors import ClassifierError, StorageError
from brokerlib.models.events import Event
from brokerlib.models.features import FeatureVector
from brokerlib.models.profile import ProfileResult, UserDataView, UserProfile, fallback_profile
from brokerlib.models.sessions import SessionSummary
from brokerlib.observability import get_tracer

from apps.profiler.src.infra.keys import utc_now
from apps.profiler.src.infra.redis_store import BehaviorStore
from apps.profiler.src.service.classifier import ProfileClassifier, record_fallback
from apps.profiler.src.service.features import (
    ALL_SESSIONS,
    build_features,
    filter_by_session,
    partition_sessions,
)


class ProfileService:
    def __init__(
        self,
        store: BehaviorStore,
        classifier: ProfileClassifier,
        logger: logging.Logger,
        tz: Optional[tzinfo] = None,
    ) -> None:
        """
        Args:
            store: Behavior store.
            classifier: Feature vector -> profile collaborator.
            logger: Logger instance.
            tz: Timezone used for the peak activity hour (host local when None).
        """
        self._store = store
        self._classifier = classifier
        self._log = logger
        self._tz = tz
        self._tracer = get_tracer("profiler.profile_service")

    def compute_features(self, user_id: str, session_filter: str = ALL_SESSIONS) -> FeatureVector:
        events = self._store.list_events(user_id)
        sessions = self._store.list_session_documents(user_id)
        events, sessions = filter_by_session(events, sessions, session_filter)
        return build_features(events, sessions, tz=self._tz)

    def user_data(self, user_id: str, session_filter: str = ALL_SESSIONS) -> UserDataView:
        events = self._store.list_events(user_id)
        sessions = self._store.list_session_documents(user_id)
        _, starts, _ = partition_sessions(sessions)

        filtered_events, filtered_sessions = filter_by_session(events, sessions, session_filter)
        return UserDataView(
            user_id=user_id,
            filter=session_filter,
            events=filtered_events,
            sessions=filtered_sessions,
            features=build_features(filtered_events, filtered_sessions, tz=self._tz),
            total_events=len(events),
            total_sessions=len(starts),
        )

    def list_sessions(self, user_id: str) -> List[SessionSummary]:
        """Session summaries, most recent start first."""
        summaries = self._store.list_summaries(user_id)
        return sorted(summaries, key=lambda s: s.start_time, reverse=True)

    def session_events(self, user_id: str, session_id: str) -> List[Event]:
        """Events of one session in chronological order."""
        events = [e for e in self._store.list_events(user_id) if e.session_id == session_id]
        return sorted(events, key=lambda e: e.timestamp)

    def generate_profile(self, user_id: str) -> ProfileResult:
        """
        Aggregate, classify and cache the profile on the user record.

        Raises:
            StorageError: the history could not be read.
        """
        with self._tracer.start_as_current_span("generate_profile") as span:
            span.set_attribute("profile.user_id", user_id)
            features = self.compute_features(user_id)

            try:
                profile = self._classifier.classify(features)
            except ClassifierError as exc:
                self._log.warning(
                    "Classifier failed, serving fallback profile.",
                    extra={"user_id": user_id, "error": str(exc)},
                )
                record_fallback(type(exc).__name__)
                span.set_attribute("profile.fallback", True)
                return ProfileResult(features=features, profile=fallback_profile())

            self._save(user_id, profile)
            return ProfileResult(features=features, profile=profile)

    def _save(self, user_id: str, profile: UserProfile) -> None:
        try:
            saved = self._store.save_profile(user_id, profile, utc_now())
        except StorageError as exc:
            self._log.warning(
                "Profile save failed.",
                extra={"user_id": user_id, "error": str(exc)},
            )
            return
        if not saved:
            self._log.warning("Profile not saved, unknown user.", extra={"user_id": user_id})

    def reset_user_data(self, user_id: str) -> None:
        """Irreversibly delete the user's events, lifecycle log and summaries."""
        self._store.delete_user_data(user_id)
        self._log.info("User data reset.", extra={"user_id": user_id})
