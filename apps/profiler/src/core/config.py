"""
Profiler-specific configuration (API service).

This handles ONLY profiler concerns:
- API bind address and CORS origin
- the "unknown session" sentinel sent by the instrumentation
- simulated price feed parameters

Environment variables (via PROFILER__ prefix), e.g.:

    PROFILER__API_HOST=0.0.0.0
    PROFILER__API_PORT=3000
    PROFILER__FRONTEND_URL=http://localhost:8080

    PROFILER__PRICE_SEED_POINTS=20
    PROFILER__PRICE_MAX_POINTS=50
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProfilerSettings(BaseSettings):
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3000, ge=1, le=65535)
    frontend_url: str = Field(
        default="http://localhost:8080",
        description="Allowed CORS origin for the single-page frontend.",
    )

    unknown_session_id: str = Field(
        default="unknown-session",
        description="Session id the frontend sends before a session exists.",
    )

    price_initial: float = Field(default=100.0, gt=0)
    price_seed_points: int = Field(default=20, ge=1)
    price_max_points: int = Field(default=50, ge=1)
    price_max_change: float = Field(default=0.05, ge=0.0, lt=1.0)
    price_seed_interval_sec: int = Field(default=30, ge=1)

    model_config = SettingsConfigDict(env_prefix="PROFILER__", case_sensitive=False)

    @classmethod
    @lru_cache(maxsize=1)
    def load(cls) -> "ProfilerSettings":
        return cls()
