"""
Admin surface: user search and target-user drill-down.

Authorization is an injected policy so that the allowlist source can be
swapped without touching the services.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Protocol

from brokerlib.errors import AuthorizationError, UserNotFoundError, ValidationError
from brokerlib.models.profile import AdminUserView, ProfileResult, UserDataView, UserRecord

from apps.profiler.src.infra.redis_store import BehaviorStore
from apps.profiler.src.service.features import ALL_SESSIONS
from apps.profiler.src.service.profile_service import ProfileService


class AdminPolicy(Protocol):
    def is_admin(self, user: UserRecord) -> bool: ...


class EmailAllowlistPolicy:
    """Admins are the users whose e-mail is on a configured allowlist."""

    def __init__(self, emails: Iterable[str]) -> None:
        self._emails = frozenset(e.strip() for e in emails if e.strip())

    def is_admin(self, user: UserRecord) -> bool:
        return user.email.strip() in self._emails


def _search_pattern(query: str) -> re.Pattern:
    try:
        return re.compile(query, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(query), re.IGNORECASE)


class AdminService:
    def __init__(
        self,
        store: BehaviorStore,
        profiles: ProfileService,
        policy: AdminPolicy,
        logger: logging.Logger,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._policy = policy
        self._log = logger

    def is_admin(self, user_id: str) -> bool:
        user = self._store.get_user(user_id)
        return user is not None and self._policy.is_admin(user)

    def _authorize(self, caller_id: str) -> None:
        if not self.is_admin(caller_id):
            self._log.warning("Admin access denied.", extra={"caller_id": caller_id})
            raise AuthorizationError("Admin access required")

    def search_users(self, caller_id: str, query: str | None) -> List[AdminUserView]:
        self._authorize(caller_id)
        if not query or not query.strip():
            raise ValidationError("Search query required")

        pattern = _search_pattern(query.strip())
        return [
            AdminUserView.from_record(user, self._policy.is_admin(user))
            for user in self._store.list_users()
            if pattern.search(user.username) or pattern.search(user.email)
        ]

    def user_data(
        self, caller_id: str, target_user_id: str, session_filter: str = ALL_SESSIONS
    ) -> UserDataView:
        self._authorize(caller_id)
        return self._profiles.user_data(target_user_id, session_filter)

    def generate_profile(self, caller_id: str, target_user_id: str) -> ProfileResult:
        self._authorize(caller_id)
        if self._store.get_user(target_user_id) is None:
            raise UserNotFoundError(f"User '{target_user_id}' not found")
        return self._profiles.generate_profile(target_user_id)
