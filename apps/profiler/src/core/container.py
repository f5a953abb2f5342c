"""
Service container for the profiler.

Builds the behavior store, Ollama client, admin policy and every service
consumed by the HTTP layer. Collaborators can be injected for tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from brokerlib.config import AppConfig
from brokerlib.observability import get_logger

from apps.profiler.src.core.config import ProfilerSettings
from apps.profiler.src.infra.ollama_client import OllamaClient
from apps.profiler.src.infra.redis_store import BehaviorStore
from apps.profiler.src.service.admin import AdminPolicy, AdminService, EmailAllowlistPolicy
from apps.profiler.src.service.classifier import OllamaProfileClassifier, ProfileClassifier
from apps.profiler.src.service.event_ingest import EventIngestService
from apps.profiler.src.service.price_feed import PriceFeed
from apps.profiler.src.service.profile_service import ProfileService
from apps.profiler.src.service.session_tracker import SessionTracker


@dataclass(frozen=True)
class ProfilerServices:
    store: BehaviorStore
    events: EventIngestService
    sessions: SessionTracker
    profiles: ProfileService
    admin: AdminService
    prices: PriceFeed


def build_services(
    app_config: AppConfig,
    settings: ProfilerSettings,
    *,
    store: Optional[BehaviorStore] = None,
    classifier: Optional[ProfileClassifier] = None,
    policy: Optional[AdminPolicy] = None,
    tz: Optional[tzinfo] = None,
) -> ProfilerServices:
    """
    Wire every profiler service. Collaborators can be injected (tests).
    """
    store = store or BehaviorStore()

    if classifier is None:
        ollama = app_config.ollama
        classifier = OllamaProfileClassifier(
            OllamaClient(
                base_url=ollama.url,
                model=ollama.model,
                logger=get_logger("OllamaClient"),
                timeout_sec=ollama.timeout_sec,
                temperature=ollama.temperature,
            )
        )

    policy = policy or EmailAllowlistPolicy(app_config.admin.email_list)
    profiles = ProfileService(store, classifier, get_logger("ProfileService"), tz=tz)

    return ProfilerServices(
        store=store,
        events=EventIngestService(store, unknown_session_id=settings.unknown_session_id),
        sessions=SessionTracker(store),
        profiles=profiles,
        admin=AdminService(store, profiles, policy, get_logger("AdminService")),
        prices=PriceFeed(
            initial_price=settings.price_initial,
            seed_points=settings.price_seed_points,
            max_points=settings.price_max_points,
            max_change=settings.price_max_change,
            seed_interval_sec=settings.price_seed_interval_sec,
        ),
    )
