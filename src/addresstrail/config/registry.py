"""Configuration for the registry bulk export endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import optional_env
from .http_resilience import RetryPolicy

DEFAULT_EXPORT_URL: Final[str] = "https://data.brreg.no/enhetsregisteret/api/enheter/lastned"
EXPORT_ACCEPT_HEADER: Final[str] = "application/vnd.brreg.enhetsregisteret.enhet.v2+gzip;charset=UTF-8"


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    export_url: str = DEFAULT_EXPORT_URL
    timeout_seconds: float = 300.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    accept: str = EXPORT_ACCEPT_HEADER


def get_registry_config() -> RegistryConfig:
    return RegistryConfig(export_url=optional_env("REGISTRY_EXPORT_URL") or DEFAULT_EXPORT_URL)
