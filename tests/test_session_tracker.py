from datetime import datetime, timezone

import pytest

from brokerlib.errors import ValidationError

UA = {
    "browser": {"browser": "Mozilla/5.0", "version": "5.0"},
    "device": "MacIntel",
    "os": {"os": "macOS", "version": "Unknown"},
    "full_ua": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
}


def test_start_creates_zeroed_summary(services, store):
    signal = services.sessions.record_session_signal("u1", "s1", "session_start", {"user_agent": UA})

    summary = store.get_summary("u1", "s1")
    assert summary.type == "session_summary"
    assert summary.events_count == summary.clicks_buy == summary.clicks_sell == 0
    assert summary.hovers_buy == summary.hovers_sell == []
    assert summary.completed is False
    assert summary.end_time is None
    assert summary.start_time == signal.timestamp
    assert summary.user_agent.device == "MacIntel"
    assert [s.type for s in store.list_session_events("u1")] == ["session_start"]


def test_repeated_start_resets_summary(services, store):
    services.sessions.record_session_signal("u1", "s1", "session_start")
    services.events.record_event("u1", "s1", "click", "buy")
    services.events.record_event("u1", "s1", "hover", "sell", 400)

    services.sessions.record_session_signal("u1", "s1", "session_start")

    summaries = store.list_summaries("u1")
    assert len(summaries) == 1
    assert summaries[0].clicks_buy == 0
    assert summaries[0].hovers_sell == []
    assert summaries[0].events_count == 0
    assert len(store.list_session_events("u1")) == 2


def test_end_completes_summary(services, store):
    services.sessions.record_session_signal("u1", "s1", "session_start")

    end = services.sessions.record_session_signal(
        "u1", "s1", "session_end", {"total_session_duration": 5000}
    )

    summary = store.get_summary("u1", "s1")
    assert summary.completed is True
    assert summary.duration_ms == 5000
    assert summary.end_time == end.timestamp


def test_second_end_does_not_change_frozen_fields(services, store):
    services.sessions.record_session_signal("u1", "s1", "session_start")
    services.sessions.record_session_signal("u1", "s1", "session_end", {"total_session_duration": 5000})

    services.sessions.record_session_signal("u1", "s1", "session_end", {"total_session_duration": 9999})

    assert store.get_summary("u1", "s1").duration_ms == 5000
    assert len(store.list_session_events("u1")) == 3


def test_end_without_start_is_logged_only(services, store):
    services.sessions.record_session_signal("u1", "s1", "session_end", {"total_session_duration": 100})

    assert store.get_summary("u1", "s1") is None
    assert [s.type for s in store.list_session_events("u1")] == ["session_end"]


@pytest.mark.parametrize("signal_type", ["session_pause", "session_resume"])
def test_pause_and_resume_do_not_touch_summary(services, store, signal_type):
    services.sessions.record_session_signal("u1", "s1", "session_start")
    before = store.get_summary("u1", "s1")

    services.sessions.record_session_signal("u1", "s1", signal_type)

    assert store.get_summary("u1", "s1") == before
    assert store.list_session_events("u1")[-1].type == signal_type


@pytest.mark.parametrize("signal_type", [None, "", "session_restart"])
def test_invalid_signal_type_is_rejected(services, store, signal_type):
    with pytest.raises(ValidationError):
        services.sessions.record_session_signal("u1", "s1", signal_type)

    assert store.list_session_events("u1") == []


def test_non_numeric_duration_is_rejected(services, store):
    with pytest.raises(ValidationError):
        services.sessions.record_session_signal(
            "u1", "s1", "session_end", {"total_session_duration": "5000"}
        )

    assert store.list_session_events("u1") == []


def test_client_timestamp_and_extra_fields_are_kept(services, store):
    sent = datetime(2025, 11, 10, 9, 30, tzinfo=timezone.utc)

    services.sessions.record_session_signal(
        "u1",
        "s1",
        "session_start",
        {"timestamp": sent.isoformat(), "referrer": "newsletter", "user_id": "spoofed"},
    )

    logged = store.list_session_events("u1")[0]
    assert logged.timestamp == sent
    assert logged.user_id == "u1"
    assert logged.model_extra == {"referrer": "newsletter"}
    assert store.get_summary("u1", "s1").start_time == sent


def test_signal_without_session_id_is_logged_without_summary(services, store):
    services.sessions.record_session_signal("u1", None, "session_start")

    assert len(store.list_session_events("u1")) == 1
    assert store.list_summaries("u1") == []


def test_frontend_session_start_payload_is_accepted(services, store):
    payload = {
        "session_id": "s_1731234567890_k2j4",
        "type": "session_start",
        "timestamp": "2025-11-10T10:15:00.000Z",
        "time_of_day": "10:15",
        "user_agent": {
            "raw": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 Safari/605.1.15",
            "browser": {"browser": "Safari", "version": "605"},
            "device": "desktop",
            "os": {"os": "macOS", "version": "Unknown"},
            "screen": {"width": 1512, "height": 982, "colorDepth": 30},
            "viewport": {"width": 1512, "height": 860},
        },
    }

    services.sessions.record_session_signal("u1", payload["session_id"], payload["type"], payload)
    services.events.record_event("u1", payload["session_id"], "click", "buy")

    summary = store.get_summary("u1", "s_1731234567890_k2j4")
    assert summary.clicks_buy == 1
    assert summary.user_agent.os.os == "macOS"
    assert summary.user_agent.screen["colorDepth"] == 30
    assert summary.user_agent.model_extra["raw"].startswith("Mozilla/5.0")
    logged = store.list_session_events("u1")[0]
    assert logged.model_extra == {"time_of_day": "10:15"}

    features = services.profiles.compute_features("u1")
    assert features.primary_device == "desktop"
    assert features.primary_browser == "Safari"


def test_offset_less_client_timestamp_is_read_as_utc(services, store):
    services.sessions.record_session_signal(
        "u1", "old", "session_start", {"timestamp": "2025-11-10T09:00:00"}
    )
    services.sessions.record_session_signal("u1", "new", "session_start")

    assert store.get_summary("u1", "old").start_time == datetime(2025, 11, 10, 9, 0, tzinfo=timezone.utc)
    assert [s.session_id for s in services.profiles.list_sessions("u1")] == ["new", "old"]
