"""Retry helpers for HTTP downloads."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from addresstrail.config import RetryPolicy

log = logging.getLogger(__name__)


class RetryableStatusError(httpx.HTTPStatusError):
    """Raised for responses whose status code is worth another attempt."""


def raise_for_retryable_status(response: httpx.Response, policy: RetryPolicy) -> None:
    if response.status_code in policy.status_forcelist:
        raise RetryableStatusError(
            f"Retryable status {response.status_code} from {response.request.url}",
            request=response.request,
            response=response,
        )


def build_retrying(
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Return a tenacity controller retrying transport errors and retryable statuses."""

    return Retrying(
        stop=stop_after_attempt(policy.total + 1),
        wait=wait_exponential(multiplier=policy.backoff_factor, max=policy.max_backoff_wait),
        retry=retry_if_exception_type((httpx.TransportError, RetryableStatusError)),
        before_sleep=before_sleep_log(log, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
