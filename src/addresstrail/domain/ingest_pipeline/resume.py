"""Count-based resume: derive a start index from the number of stored companies.

This is only a fallback for runs that were not given an explicit range. The
count is trusted only when the record just before the candidate start is known
to the store; otherwise the run starts over, which is safe because ingestion is
idempotent.
"""

from __future__ import annotations

import json
from itertools import islice
from logging import getLogger
from typing import TYPE_CHECKING

from addresstrail.domain.ingest_pipeline.progress import RecordRange

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from typing import Any


log = getLogger(__name__)


def plan_count_resume(
    objects: Iterable[str],
    *,
    stored_companies: int,
    identify: Callable[[Mapping[str, Any]], str | None],
    exists: Callable[[str], bool],
    end: int | None = None,
) -> RecordRange:
    """Return the range to ingest when resuming from ``stored_companies``."""

    if stored_companies <= 0:
        return RecordRange(0, end)
    if end is not None and stored_companies >= end:
        log.info(
            "Store already holds %s companies, at or past range end %s; not resuming",
            stored_companies,
            end,
        )
        return RecordRange(0, end)

    anchor_index = stored_companies - 1
    anchor_text = next(islice(objects, anchor_index, None), None)
    if anchor_text is None:
        log.warning(
            "Export has fewer than %s records; resuming from the start", stored_companies
        )
        return RecordRange(0, end)

    try:
        anchor = json.loads(anchor_text)
    except ValueError:
        anchor = None
    organization_number = identify(anchor) if isinstance(anchor, dict) else None

    if organization_number is None or not exists(organization_number):
        log.warning(
            "Record %s (%s) is not in the store; count-based resume rejected, starting from 0",
            anchor_index,
            organization_number,
        )
        return RecordRange(0, end)

    log.info(
        "Resuming after record %s (%s): %s companies already stored",
        anchor_index,
        organization_number,
        stored_companies,
    )
    return RecordRange(stored_companies, end)
