"""
fakebroker shared library package.

This package contains:
- shared Pydantic models (events, session summaries, features, profiles)
- the error taxonomy
- observability utilities (logging, tracing, metrics)
- global config and the service base class
"""

from brokerlib.models.events import Event, EventType, SessionEvent, SessionSignalType, UserAgent
from brokerlib.models.features import FeatureVector, SessionData
from brokerlib.models.profile import UserProfile, UserRecord
from brokerlib.models.sessions import SessionSummary

__all__ = [
    "Event",
    "EventType",
    "SessionEvent",
    "SessionSignalType",
    "UserAgent",
    "FeatureVector",
    "SessionData",
    "SessionSummary",
    "UserProfile",
    "UserRecord",
]
