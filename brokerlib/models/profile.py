"""
User record and behavioral profile models.

The profile is cached on the user record and overwritten wholesale on
each successful classification; no history is retained.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from brokerlib.models.events import Event, SessionEvent
from brokerlib.models.features import FeatureVector
from brokerlib.models.sessions import SessionSummary

PROFILE_GROUPS: Tuple[str, ...] = (
    "Cautious",
    "Balanced",
    "Opportunistic",
    "Impulsive",
    "Exploratory",
)


class UserProfile(BaseModel):
    profile_type: str
    confidence: float = Field(ge=0.0, le=1.0)
    signals: List[str] = Field(default_factory=list)

    @field_validator("profile_type")
    @classmethod
    def _known_group(cls, value: str) -> str:
        if value not in PROFILE_GROUPS:
            raise ValueError(f"profile_type must be one of {PROFILE_GROUPS}")
        return value

    @field_validator("signals", mode="before")
    @classmethod
    def _stringify_signals(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


def fallback_profile() -> UserProfile:
    """Deterministic profile used whenever the classifier cannot answer."""
    return UserProfile(profile_type="Balanced", confidence=0.5, signals=["fallback"])


class UserRecord(BaseModel):
    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None
    profile: Optional[UserProfile] = None
    profile_updated_at: Optional[datetime] = None


class ProfileResult(BaseModel):
    features: FeatureVector
    profile: UserProfile


class UserDataView(BaseModel):
    """History + features of one user, optionally narrowed to a session."""

    user_id: str
    filter: str
    events: List[Event]
    sessions: List[Union[SessionSummary, SessionEvent]]
    features: FeatureVector
    total_events: int
    total_sessions: int


class AdminUserView(BaseModel):
    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None
    is_admin: bool = False
    profile: Optional[UserProfile] = None
    profile_updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, user: UserRecord, is_admin: bool) -> "AdminUserView":
        return cls(is_admin=is_admin, **user.model_dump())
