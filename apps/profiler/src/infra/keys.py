"""
Key helpers for the Redis-backed behavior store.

This module provides:
- Canonical Redis key builders for events, lifecycle logs, session
  summaries and user records
- Small time helpers that keep everything in UTC

Layout (prefix from AppConfig.redis.key_prefix):

    {p}events:{user_id}                          list of Event JSON
    {p}sessions:{user_id}                        list of SessionEvent JSON
    {p}summaries:{user_id}                       set of session ids with a summary
    {p}summary:{user_id}:{session_id}            hash of scalar summary fields
    {p}hovers_buy:{user_id}:{session_id}         list of hover durations
    {p}hovers_sell:{user_id}:{session_id}        list of hover durations
    {p}user:{user_id}                            hash of the user record
    {p}users                                     set of user ids
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from brokerlib.config import AppConfig


@dataclass(frozen=True)
class StoreKeys:
    prefix: str

    @classmethod
    def from_app_config(cls) -> "StoreKeys":
        return cls(prefix=AppConfig.load().redis.key_prefix)

    def events(self, user_id: str) -> str:
        return f"{self.prefix}events:{user_id}"

    def session_log(self, user_id: str) -> str:
        return f"{self.prefix}sessions:{user_id}"

    def summary_index(self, user_id: str) -> str:
        return f"{self.prefix}summaries:{user_id}"

    def summary(self, user_id: str, session_id: str) -> str:
        return f"{self.prefix}summary:{user_id}:{session_id}"

    def hovers(self, user_id: str, session_id: str, target: str) -> str:
        return f"{self.prefix}hovers_{target}:{user_id}:{session_id}"

    def user(self, user_id: str) -> str:
        return f"{self.prefix}user:{user_id}"

    def users(self) -> str:
        return f"{self.prefix}users"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)
