"""
Session summary model.

One summary exists per (user_id, session_id). It is created on
`session_start`, mutated by every interaction event, and its end fields
(`end_time`, `duration_ms`, `completed`) are frozen by `session_end`.
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from brokerlib.models.events import UserAgent

SESSION_SUMMARY = "session_summary"


class SessionSummary(BaseModel):
    user_id: str
    session_id: str
    type: Literal["session_summary"] = SESSION_SUMMARY
    start_time: datetime
    end_time: Optional[datetime] = None
    user_agent: Optional[UserAgent] = None
    events_count: int = 0
    clicks_buy: int = 0
    clicks_sell: int = 0
    hovers_buy: List[float] = Field(default_factory=list)
    hovers_sell: List[float] = Field(default_factory=list)
    duration_ms: Optional[float] = None
    completed: bool = False
    last_activity: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "u_12",
                "session_id": "s_1731234567890_k2j4",
                "type": "session_summary",
                "start_time": "2025-11-10T10:15:00Z",
                "end_time": "2025-11-10T10:20:00Z",
                "user_agent": {"device": "MacIntel", "browser": {"browser": "Mozilla/5.0"}},
                "events_count": 12,
                "clicks_buy": 2,
                "clicks_sell": 1,
                "hovers_buy": [320, 1450],
                "hovers_sell": [210],
                "duration_ms": 300000,
                "completed": True,
                "last_activity": "2025-11-10T10:19:58Z",
            }
        }
    )
