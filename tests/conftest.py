import os

os.environ.setdefault("OTEL__ENABLED", "false")

from datetime import timezone
from typing import List, Optional

import fakeredis
import pytest

from brokerlib.config import AppConfig
from brokerlib.errors import ClassifierError
from brokerlib.models.features import FeatureVector
from brokerlib.models.profile import UserProfile, UserRecord

from apps.profiler.src.core.config import ProfilerSettings
from apps.profiler.src.core.container import ProfilerServices, build_services
from apps.profiler.src.infra.keys import StoreKeys
from apps.profiler.src.infra.redis_store import BehaviorStore
from apps.profiler.src.service.admin import EmailAllowlistPolicy

ADMIN_EMAIL = "admin@broker.test"


class StubClassifier:
    """Records the features it was asked about and answers from a script."""

    def __init__(self, profile: Optional[UserProfile] = None, error: Optional[Exception] = None):
        self.profile = profile or UserProfile(
            profile_type="Cautious", confidence=0.8, signals=["long hovers"]
        )
        self.error = error
        self.calls: List[FeatureVector] = []

    def classify(self, features: FeatureVector) -> UserProfile:
        self.calls.append(features)
        if self.error is not None:
            raise self.error
        return self.profile


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(redis_client) -> BehaviorStore:
    return BehaviorStore(client=redis_client, keys=StoreKeys(prefix="test:"))


@pytest.fixture
def classifier() -> StubClassifier:
    return StubClassifier()


@pytest.fixture
def failing_classifier() -> StubClassifier:
    return StubClassifier(error=ClassifierError("ollama down"))


@pytest.fixture
def settings() -> ProfilerSettings:
    return ProfilerSettings()


@pytest.fixture
def services(store, classifier, settings) -> ProfilerServices:
    return build_services(
        AppConfig(),
        settings,
        store=store,
        classifier=classifier,
        policy=EmailAllowlistPolicy([ADMIN_EMAIL]),
        tz=timezone.utc,
    )


@pytest.fixture
def users(store):
    alice = UserRecord(id="u-alice", username="alice", email="alice@broker.test")
    bob = UserRecord(id="u-bob", username="bobby", email="bob@example.org")
    admin = UserRecord(id="u-admin", username="root", email=ADMIN_EMAIL)
    for user in (alice, bob, admin):
        store.upsert_user(user)
    return {"alice": alice, "bob": bob, "admin": admin}
