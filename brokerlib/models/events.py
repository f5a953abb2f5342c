"""
Interaction event and session lifecycle models + supporting enums.

These models are shared between the ingest path, the store and the
feature aggregator. They define the typed contract for a single raw
interaction event and a single lifecycle signal.

All timestamps are timezone-aware datetimes (UTC when assigned server-side).
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EventType(str, Enum):
    CLICK = "click"
    HOVER = "hover"


class SessionSignalType(str, Enum):
    SESSION_START = "session_start"
    SESSION_PAUSE = "session_pause"
    SESSION_RESUME = "session_resume"
    SESSION_END = "session_end"


# Button targets that have their own counters on a session summary.
TARGET_BUY = "buy"
TARGET_SELL = "sell"


class BrowserInfo(BaseModel):
    browser: Optional[str] = None
    version: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class OSInfo(BaseModel):
    os: Optional[str] = None
    version: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class UserAgent(BaseModel):
    """
    Client environment as reported by the instrumentation.

    Only `device`, `browser.browser` and `full_ua` are read by the
    aggregator; the rest is kept for the dashboards.
    """

    browser: Optional[BrowserInfo] = None
    device: Optional[str] = None
    os: Optional[OSInfo] = None
    screen: Optional[Dict[str, Any]] = None
    viewport: Optional[Dict[str, Any]] = None
    full_ua: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Event(BaseModel):
    """
    A single click or hover on a tracked button. Append-only.
    """

    user_id: str
    session_id: str
    type: EventType
    target: str
    hover_ms: float = 0
    timestamp: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "user_id": "u_12",
                "session_id": "s_1731234567890_k2j4",
                "type": "hover",
                "target": "buy",
                "hover_ms": 420,
                "timestamp": "2025-11-10T10:15:00Z",
            }
        },
    )


class SessionEvent(BaseModel):
    """
    Lifecycle log entry. The log is the source of truth for session starts;
    summaries are derived state.

    Extra client fields are kept verbatim.
    """

    user_id: str
    session_id: Optional[str] = None
    type: SessionSignalType
    timestamp: datetime
    user_agent: Optional[UserAgent] = None
    total_session_duration: Optional[float] = None

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # Offset-less client timestamps are taken as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="allow",
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "user_id": "u_12",
                "session_id": "s_1731234567890_k2j4",
                "type": "session_end",
                "timestamp": "2025-11-10T10:20:00Z",
                "total_session_duration": 300000,
            }
        },
    )
