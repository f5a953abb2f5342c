import logging
from datetime import timezone

import pytest

from brokerlib.errors import StorageError
from brokerlib.models.profile import fallback_profile

from apps.profiler.src.service.profile_service import ProfileService

from conftest import StubClassifier

UA = {"browser": {"browser": "Firefox"}, "device": "Win32"}


def _one_session(services, user_id="u-alice", session_id="s1"):
    services.sessions.record_session_signal(user_id, session_id, "session_start", {"user_agent": UA})
    services.events.record_event(user_id, session_id, "click", "buy")
    services.events.record_event(user_id, session_id, "hover", "sell", 250)
    services.sessions.record_session_signal(
        user_id, session_id, "session_end", {"total_session_duration": 5000}
    )


def test_single_session_features(services, users):
    _one_session(services)

    features = services.profiles.compute_features("u-alice")

    assert features.number_of_clicks_buy == 1
    assert features.number_of_clicks_sell == 0
    assert features.average_hover_sell_duration == 250
    assert features.percentile95_hover_sell_duration == 250
    assert features.average_hover_buy_duration == 0
    assert features.average_session_duration_ms == 5000
    assert features.total_sessions == 1
    assert features.primary_device == "Win32"
    assert features.primary_browser == "Firefox"
    assert features.session_data.completed_sessions == 1
    assert features.session_data.session_ends_count == 1
    assert features.session_data.unique_session_ids == ["s1"]


def test_generate_profile_caches_classifier_answer(services, store, classifier, users):
    _one_session(services)

    result = services.profiles.generate_profile("u-alice")

    assert result.profile == classifier.profile
    assert classifier.calls == [result.features]
    user = store.get_user("u-alice")
    assert user.profile == classifier.profile
    assert user.profile_updated_at is not None


def test_generate_profile_is_idempotent_on_features(services, classifier, users):
    _one_session(services)

    first = services.profiles.generate_profile("u-alice")
    second = services.profiles.generate_profile("u-alice")

    assert first.features == second.features
    assert classifier.calls[0] == classifier.calls[1]


def test_classifier_failure_serves_fallback_without_saving(store, failing_classifier, users):
    profiles = ProfileService(store, failing_classifier, logging.getLogger("test"), tz=timezone.utc)

    result = profiles.generate_profile("u-alice")

    assert result.profile == fallback_profile()
    assert result.profile.signals == ["fallback"]
    assert store.get_user("u-alice").profile is None


def test_profile_for_unknown_user_is_returned_but_not_saved(store, classifier):
    profiles = ProfileService(store, classifier, logging.getLogger("test"), tz=timezone.utc)

    result = profiles.generate_profile("nobody")

    assert result.profile == classifier.profile
    assert store.get_user("nobody") is None


def test_profile_save_failure_does_not_fail_request(store, classifier, users, monkeypatch):
    def broken_save(*args, **kwargs):
        raise StorageError("write failed")

    monkeypatch.setattr(store, "save_profile", broken_save)
    profiles = ProfileService(store, classifier, logging.getLogger("test"), tz=timezone.utc)

    assert profiles.generate_profile("u-alice").profile == classifier.profile


def test_history_read_failure_propagates(store, classifier, monkeypatch):
    def broken_read(*args, **kwargs):
        raise StorageError("read failed")

    monkeypatch.setattr(store, "list_events", broken_read)
    profiles = ProfileService(store, classifier, logging.getLogger("test"))

    with pytest.raises(StorageError):
        profiles.generate_profile("u-alice")
    assert classifier.calls == []


def test_reset_clears_history_but_keeps_user(services, store, users):
    _one_session(services)
    services.profiles.generate_profile("u-alice")

    services.profiles.reset_user_data("u-alice")

    assert store.list_events("u-alice") == []
    assert store.list_session_documents("u-alice") == []
    features = services.profiles.compute_features("u-alice")
    assert features.total_sessions == 0
    assert features.number_of_clicks_buy == 0
    assert store.get_user("u-alice").profile is not None


def test_reset_only_touches_the_caller(services, store, users):
    _one_session(services, user_id="u-alice")
    _one_session(services, user_id="u-bob")

    services.profiles.reset_user_data("u-alice")

    assert len(store.list_events("u-bob")) == 2
    assert store.get_summary("u-bob", "s1") is not None


def test_user_data_filter_narrows_history_but_not_totals(services, users):
    _one_session(services, session_id="s1")
    _one_session(services, session_id="s2")
    services.events.record_event("u-alice", "s2", "click", "sell")

    view = services.profiles.user_data("u-alice", "s2")

    assert view.filter == "s2"
    assert {e.session_id for e in view.events} == {"s2"}
    assert {s.session_id for s in view.sessions} == {"s2"}
    assert view.total_events == 5
    assert view.total_sessions == 2
    assert view.features.number_of_clicks_sell == 1
    assert view.features.total_sessions == 1

    everything = services.profiles.user_data("u-alice")
    assert len(everything.events) == 5
    assert everything.features.total_sessions == 2


def test_list_sessions_newest_first(services, users):
    for sid, ts in (("old", "2025-11-10T09:00:00+00:00"), ("new", "2025-11-10T11:00:00+00:00")):
        services.sessions.record_session_signal("u-alice", sid, "session_start", {"timestamp": ts})

    sessions = services.profiles.list_sessions("u-alice")

    assert [s.session_id for s in sessions] == ["new", "old"]


def test_session_events_are_scoped_and_chronological(services, users):
    _one_session(services, session_id="s1")
    services.events.record_event("u-alice", "s2", "click", "sell")

    events = services.profiles.session_events("u-alice", "s1")

    assert [e.type for e in events] == ["click", "hover"]
    assert events[0].timestamp <= events[1].timestamp


def test_empty_history_is_still_classified(store):
    classifier = StubClassifier()
    profiles = ProfileService(store, classifier, logging.getLogger("test"), tz=timezone.utc)

    profiles.generate_profile("u-empty")

    assert classifier.calls[0].total_sessions == 0
