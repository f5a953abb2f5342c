"""
uvicorn-backed runner for the profiler HTTP API.
"""

from __future__ import annotations

from typing import Optional

import uvicorn

from brokerlib.base import BaseService
from brokerlib.config import AppConfig

from apps.profiler.src.api.app import create_app
from apps.profiler.src.core.config import ProfilerSettings
from apps.profiler.src.core.container import ProfilerServices


class ProfilerApiService(BaseService):
    """
    Serves the profiler FastAPI app until a shutdown signal arrives.
    """

    def __init__(self, settings: ProfilerSettings, app_config: AppConfig | None = None) -> None:
        super().__init__("profiler-api", config=app_config)
        self.settings = settings
        self._services: Optional[ProfilerServices] = None
        self._server: Optional[uvicorn.Server] = None

    def attach(self, services: ProfilerServices) -> None:
        self._services = services

    async def start(self) -> None:
        if self._services is None:
            raise RuntimeError("ProfilerApiService started without services attached")

        config = uvicorn.Config(
            create_app(self._services, self.settings),
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_config=None,
        )
        self._server = uvicorn.Server(config)

        self.logger.info(
            "Profiler API listening",
            extra={"host": self.settings.api_host, "port": self.settings.api_port},
        )
        await self._server.serve()

    async def shutdown(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        self.logger.info("Profiler API stopped")
