"""
BaseService: standard base class for fakebroker services.

Provides:
- Logger
- Tracer
- Meter
- OTel bootstrap
- Structured error handling
- Standardized service lifecycle hooks
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from brokerlib.config import AppConfig
from brokerlib.observability import (
    get_logger,
    get_meter,
    get_tracer,
    init_observability,
)


class BaseService(ABC):
    """
    Abstract base class for long-running services (profiler API).

    Subclasses automatically receive:
    - `self.config`: Central AppConfig
    - `self.logger`: structured JSON logger
    - `self.tracer`: OpenTelemetry tracer
    - `self.meter`: OpenTelemetry metrics instance

    Subclasses must implement:
        async def start(self) -> None
        async def shutdown(self) -> None
    """

    def __init__(self, service_name: str, config: AppConfig | None = None):
        """
        Args:
            service_name: Logical name of the service (e.g. "profiler-api").
            config: Optional pre-loaded configuration.
        """
        self.config = config or AppConfig.load()

        init_observability(level=self._resolve_log_level())

        self.logger = get_logger(service_name)
        self.tracer = get_tracer(service_name)
        self.meter = get_meter()

        self.logger.info(
            "Service initialized",
            extra={"service_name": service_name},
        )

    def _resolve_log_level(self) -> int:
        """Convert config log level string to numeric logging constant."""
        level_str = self.config.service.log_level.upper()
        return getattr(logging, level_str, logging.INFO)

    @abstractmethod
    async def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        raise NotImplementedError

    def run_sync(self) -> None:
        """
        Run the async `start()` inside a fresh event loop.
        """
        try:
            asyncio.run(self.start())
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
            asyncio.run(self.shutdown())
        except Exception as exc:
            self.logger.error("Service crashed", exc_info=True)
            raise RuntimeError("Uncaught service failure") from exc
