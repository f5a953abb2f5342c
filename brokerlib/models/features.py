# brokerlib/models/features.py
"""
Pydantic models for the derived behavioral feature vector.

The vector is a read model: it is recomputed from the stored events and
sessions on every request and never persisted. Field names are part of
the dashboard contract and must not change.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SessionData(BaseModel):
    total_sessions: int = 0
    completed_sessions: int = 0
    session_summaries_count: int = 0
    session_ends_count: int = 0
    unique_session_ids: List[str] = Field(default_factory=list)


class FeatureVector(BaseModel):
    """
    Statistical summary of a user's (or a single session's) interactions.

    Durations are milliseconds rounded half-up to integers.
    """

    number_of_clicks_buy: int = 0
    number_of_clicks_sell: int = 0
    average_hover_buy_duration: int = 0
    average_hover_sell_duration: int = 0
    percentile95_hover_buy_duration: int = 0
    percentile95_hover_sell_duration: int = 0
    average_session_duration_ms: int = 0
    peak_activity_hour: Optional[int] = Field(
        default=None, description="Hour of day (0-23) with the most session starts"
    )
    total_sessions: int = Field(default=0, description="Number of session_start signals")
    primary_device: Optional[str] = None
    primary_browser: Optional[str] = None
    device_distribution: Dict[str, int] = Field(default_factory=dict)
    browser_distribution: Dict[str, int] = Field(default_factory=dict)
    session_data: SessionData = Field(default_factory=SessionData)
