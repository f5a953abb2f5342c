"""
Bootstrap for the profiler API service.

- Load global + profiler configs
- Build the service container
- Wrap it in the uvicorn-backed API service
"""

from __future__ import annotations

from typing import Final

from brokerlib.config import AppConfig
from brokerlib.observability import get_logger

from apps.profiler.src.api.server import ProfilerApiService
from apps.profiler.src.core.config import ProfilerSettings
from apps.profiler.src.core.container import build_services


def bootstrap() -> ProfilerApiService:
    """
    Build a fully wired ProfilerApiService instance.
    """
    app_cfg: Final[AppConfig] = AppConfig.load()
    settings: Final[ProfilerSettings] = ProfilerSettings.load()

    service = ProfilerApiService(settings, app_cfg)
    service.attach(build_services(app_cfg, settings))

    log = get_logger("profiler-bootstrap")
    log.info(
        "Profiler service initialized",
        extra={"api_host": settings.api_host, "api_port": settings.api_port},
    )
    return service
