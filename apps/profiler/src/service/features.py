"""
Behavioral feature aggregation.

Pure, read-only functions that turn a user's raw events and session
documents into a fixed-shape FeatureVector. Nothing here touches the
store, so aggregation can run concurrently without coordination.

Click and hover figures are read from the session summary counters only;
raw events are never recounted, which keeps the numbers consistent with
the incremental summary updates done on ingest.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import tzinfo
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from brokerlib.models.events import Event, SessionEvent, SessionSignalType, UserAgent
from brokerlib.models.features import FeatureVector, SessionData
from brokerlib.models.sessions import SESSION_SUMMARY, SessionSummary

SessionDocument = Union[SessionSummary, SessionEvent]

ALL_SESSIONS = "all"
UNKNOWN = "unknown"

K = TypeVar("K", bound=Hashable)


def average(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for an empty sequence."""
    if not values:
        return 0
    return sum(values) / len(values)


def percentile95(values: Sequence[float]) -> float:
    """
    Nearest-rank 95th percentile, 0 for an empty sequence.

    The index is floor(0.95 * (n - 1)) over the ascending sort, so no
    interpolation happens between neighbours.
    """
    if not values:
        return 0
    ordered = sorted(values)
    return ordered[math.floor(0.95 * (len(ordered) - 1))]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def most_frequent(counts: Dict[K, int]) -> Optional[K]:
    """
    Key with the highest count; ties go to the first key in iteration order.
    """
    best: Optional[K] = None
    best_count = 0
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


def peak_hour(hours: Iterable[int]) -> Optional[int]:
    """Most frequent hour of day; ties go to the smallest hour."""
    counts = Counter(hours)
    if not counts:
        return None
    return most_frequent(dict(sorted(counts.items())))


def device_of(ua: UserAgent) -> str:
    return ua.device or UNKNOWN


def browser_of(ua: UserAgent) -> str:
    if ua.browser is not None and ua.browser.browser:
        return ua.browser.browser
    if ua.full_ua:
        tokens = ua.full_ua.split()
        if tokens:
            return tokens[0]
    return UNKNOWN


def partition_sessions(
    sessions: Iterable[SessionDocument],
) -> Tuple[List[SessionSummary], List[SessionEvent], List[SessionEvent]]:
    """Split session documents into (summaries, starts, ends)."""
    summaries: List[SessionSummary] = []
    starts: List[SessionEvent] = []
    ends: List[SessionEvent] = []
    for doc in sessions:
        if doc.type == SESSION_SUMMARY:
            summaries.append(doc)
        elif doc.type == SessionSignalType.SESSION_START:
            starts.append(doc)
        elif doc.type == SessionSignalType.SESSION_END:
            ends.append(doc)
    return summaries, starts, ends


def filter_by_session(
    events: Iterable[Event],
    sessions: Iterable[SessionDocument],
    session_id: str,
) -> Tuple[List[Event], List[SessionDocument]]:
    """
    Restrict events and session documents to one session id.

    `"all"` leaves both inputs untouched.
    """
    events, sessions = list(events), list(sessions)
    if session_id == ALL_SESSIONS:
        return events, sessions
    return (
        [e for e in events if e.session_id == session_id],
        [s for s in sessions if s.session_id == session_id],
    )


def _unique(values: Iterable[Optional[str]]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    return list(seen)


def build_features(
    events: Iterable[Event],
    sessions: Iterable[SessionDocument],
    *,
    tz: Optional[tzinfo] = None,
) -> FeatureVector:
    """
    Aggregate a snapshot of events and session documents into features.

    Args:
        events: Raw interaction events (kept for parity with the read path;
            counts come from the summaries).
        sessions: Mixed summaries and lifecycle log entries.
        tz: Timezone for the peak activity hour; the host's local time
            when None.
    """
    summaries, starts, ends = partition_sessions(sessions)

    clicks_buy = sum(s.clicks_buy for s in summaries)
    clicks_sell = sum(s.clicks_sell for s in summaries)
    hovers_buy = [h for s in summaries for h in s.hovers_buy]
    hovers_sell = [h for s in summaries for h in s.hovers_sell]

    completed = [s for s in summaries if s.completed and s.duration_ms]
    avg_session_ms = average([s.duration_ms for s in completed])

    hour = peak_hour(s.timestamp.astimezone(tz).hour for s in starts)

    source: Sequence[SessionDocument] = summaries if summaries else starts
    agents = [doc.user_agent for doc in source if doc.user_agent is not None]
    devices = dict(Counter(device_of(ua) for ua in agents))
    browsers = dict(Counter(browser_of(ua) for ua in agents))

    return FeatureVector(
        number_of_clicks_buy=clicks_buy,
        number_of_clicks_sell=clicks_sell,
        average_hover_buy_duration=round_half_up(average(hovers_buy)),
        average_hover_sell_duration=round_half_up(average(hovers_sell)),
        percentile95_hover_buy_duration=round_half_up(percentile95(hovers_buy)),
        percentile95_hover_sell_duration=round_half_up(percentile95(hovers_sell)),
        average_session_duration_ms=round_half_up(avg_session_ms),
        peak_activity_hour=hour,
        total_sessions=len(starts),
        primary_device=most_frequent(devices),
        primary_browser=most_frequent(browsers),
        device_distribution=devices,
        browser_distribution=browsers,
        session_data=SessionData(
            total_sessions=len(starts),
            completed_sessions=len(completed),
            session_summaries_count=len(summaries),
            session_ends_count=len(ends),
            unique_session_ids=_unique(s.session_id for s in starts),
        ),
    )
