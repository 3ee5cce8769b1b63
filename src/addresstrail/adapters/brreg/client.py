"""Download the registry's bulk export."""

from __future__ import annotations

import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from addresstrail.adapters.http_resilience import build_retrying, raise_for_retryable_status
from addresstrail.config import get_registry_config

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from addresstrail.config import RegistryConfig

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DownloadResult:
    path: Path
    bytes_written: int


def download_export(
    destination: Path,
    *,
    config: RegistryConfig | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DownloadResult:
    """Stream the export to ``destination`` via a ``.part`` file renamed on success.

    The payload is written exactly as served (gzip), ready for ``open_export``.
    """

    effective_config = config or get_registry_config()
    owns_client = client is None
    http = client or httpx.Client(
        timeout=effective_config.timeout_seconds, follow_redirects=True
    )
    partial = destination.with_name(f"{destination.name}.part")
    destination.parent.mkdir(parents=True, exist_ok=True)

    log.info("Downloading registry export from %s", effective_config.export_url)
    try:
        written = 0
        for attempt in build_retrying(effective_config.retry, sleep=sleep):
            with attempt:
                written = _stream_to_file(http, effective_config, partial)
    except Exception:
        partial.unlink(missing_ok=True)
        raise
    finally:
        if owns_client:
            http.close()

    partial.replace(destination)
    log.info("Saved %s bytes to %s", written, destination)
    return DownloadResult(path=destination, bytes_written=written)


def _stream_to_file(http: httpx.Client, config: RegistryConfig, target: Path) -> int:
    written = 0
    with http.stream("GET", config.export_url, headers={"Accept": config.accept}) as response:
        raise_for_retryable_status(response, config.retry)
        response.raise_for_status()
        with target.open("wb") as handle:
            for chunk in response.iter_raw():
                handle.write(chunk)
                written += len(chunk)
    return written
