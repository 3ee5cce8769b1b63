"""Bulk ingestion configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from addresstrail.domain.ingest_pipeline.batching import DEFAULT_BATCH_SIZE
from addresstrail.domain.ingest_pipeline.tokenizer import DEFAULT_CHUNK_SIZE

from .env import optional_env, positive_int_env
from .storage import StorageConfig, get_storage_config

DEFAULT_EXPORT_FILENAME: Final[str] = "enheter_alle.json"


@dataclass(frozen=True, slots=True)
class IngestConfig:
    export_path: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE


def get_ingest_config(*, storage: StorageConfig | None = None) -> IngestConfig:
    env_path = optional_env("REGISTRY_EXPORT_PATH")
    if env_path:
        export_path = Path(env_path).expanduser()
    else:
        storage_config = storage or get_storage_config()
        export_path = storage_config.resolve_data_dir() / DEFAULT_EXPORT_FILENAME
    return IngestConfig(
        export_path=export_path,
        batch_size=positive_int_env("INGEST_BATCH_SIZE", default=DEFAULT_BATCH_SIZE),
    )
