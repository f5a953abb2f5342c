"""
Global configuration system for the fakebroker services.

Provides globally shared configuration:
- Redis document store settings
- Ollama classifier settings
- Admin allowlist
- OTEL settings
- Generic service-level runtime settings

Service-specific settings (API host/port, price feed) live in
their own modules and must NOT be added here.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
DEFAULT_ENV_PATH: Path = PROJECT_ROOT / ".env"


class RedisConfig(BaseSettings):
    """Redis document store settings."""

    host: str = Field(default="redis")
    port: int = Field(default=6379)
    db: int = Field(default=0)
    key_prefix: str = Field(default="fakebroker:")

    model_config = SettingsConfigDict(extra="ignore")


class OllamaConfig(BaseSettings):
    """Local LLM used to classify users into behavioral archetypes."""

    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="llama3.2:1b")
    timeout_sec: float = Field(default=30.0, gt=0)
    temperature: float = Field(default=0.2, ge=0.0)

    model_config = SettingsConfigDict(extra="ignore")


class AdminConfig(BaseSettings):
    """Admin allowlist, comma separated e-mail addresses."""

    emails: str = Field(default="")

    model_config = SettingsConfigDict(extra="ignore")

    @property
    def email_list(self) -> List[str]:
        return [e.strip() for e in self.emails.split(",") if e.strip()]


class OTELConfig(BaseSettings):
    """OpenTelemetry configuration shared across services."""

    service_name: str = Field(default="fakebroker-profiler")
    otlp_endpoint: str = Field(default="http://otel-collector:4317")
    resource_attributes: str = Field(default="deployment.environment=local")
    enabled: bool = Field(default=True)

    model_config = SettingsConfigDict(extra="ignore")


class ServiceConfig(BaseSettings):
    """Generic service-level config."""

    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    environment: str = Field(default="local")

    model_config = SettingsConfigDict(extra="ignore")


class AppConfig(BaseSettings):
    """Root global configuration object."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    otel: OTELConfig = Field(default_factory=OTELConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    @lru_cache(maxsize=1)
    def load(cls) -> "AppConfig":
        try:
            env_file = str(DEFAULT_ENV_PATH) if DEFAULT_ENV_PATH.exists() else None
            return cls(_env_file=env_file)
        except ValidationError as exc:
            raise RuntimeError("Invalid configuration values.") from exc
