"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .http_resilience import RetryPolicy
from .ingest import DEFAULT_BATCH_SIZE, IngestConfig, get_ingest_config
from .logging import configure_logging
from .registry import RegistryConfig, get_registry_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "ConfigurationError",
    "DatabaseConfig",
    "IngestConfig",
    "RegistryConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_ingest_config",
    "get_registry_config",
    "get_storage_config",
]
