"""Find and remove duplicate rows from the address history.

Ingestion never writes duplicates, but stores populated by earlier tooling (or
by racing processes before the partial unique index existed) can hold them.
Cleanup is run explicitly, dry run by default.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING, Final

from addresstrail.domain.model import normalize_text

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from addresstrail.domain.ingest_pipeline.ingest_ports import IngestUnitOfWork
    from addresstrail.domain.model import AddressHistoryRecord, AddressRole

log = getLogger(__name__)

DEFAULT_DELETE_BATCH_SIZE: Final[int] = 100
TOP_PATTERN_COUNT: Final[int] = 10

type PatternKey = tuple[str, str, str, AddressRole]


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    keep: AddressHistoryRecord
    duplicates: tuple[AddressHistoryRecord, ...]


@dataclass(frozen=True, slots=True)
class DuplicatePattern:
    address_line: str
    city: str
    postal_code: str
    role: AddressRole
    occurrences: int


@dataclass(frozen=True, slots=True, kw_only=True)
class CleanupReport:
    dry_run: bool
    jurisdiction_code: str | None
    rows_examined: int
    duplicate_groups: int
    duplicate_rows: int
    deleted: int
    top_patterns: tuple[DuplicatePattern, ...]


def _group_key(record: AddressHistoryRecord) -> tuple[object, ...]:
    if record.is_current:
        return record.duplicate_key
    # closed rows only collide when they describe the same interval start
    return (*record.duplicate_key, record.valid_from)


def _age(record: AddressHistoryRecord) -> tuple[object, ...]:
    return (record.valid_from, record.created_at)


def find_duplicate_groups(records: Iterable[AddressHistoryRecord]) -> list[DuplicateGroup]:
    """Group rows by duplicate key, keeping the oldest row of every group."""

    grouped: dict[tuple[object, ...], list[AddressHistoryRecord]] = defaultdict(list)
    for record in records:
        grouped[_group_key(record)].append(record)

    groups: list[DuplicateGroup] = []
    for members in grouped.values():
        if len(members) < 2:
            continue
        ordered = sorted(members, key=_age)
        groups.append(DuplicateGroup(keep=ordered[0], duplicates=tuple(ordered[1:])))
    return groups


def summarize_patterns(
    groups: Iterable[DuplicateGroup], *, limit: int = TOP_PATTERN_COUNT
) -> tuple[DuplicatePattern, ...]:
    counts: Counter[PatternKey] = Counter()
    for group in groups:
        for record in group.duplicates:
            key = (
                normalize_text(record.address_line),
                normalize_text(record.city),
                normalize_text(record.postal_code),
                record.role,
            )
            counts[key] += 1
    return tuple(
        DuplicatePattern(
            address_line=address_line,
            city=city,
            postal_code=postal_code,
            role=role,
            occurrences=occurrences,
        )
        for (address_line, city, postal_code, role), occurrences in counts.most_common(limit)
    )


def cleanup_address_history(
    unit_of_work_factory: Callable[[], IngestUnitOfWork],
    *,
    jurisdiction_code: str | None = None,
    dry_run: bool = True,
    delete_batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
) -> CleanupReport:
    """Report (and unless ``dry_run`` delete) duplicate address history rows."""

    if delete_batch_size <= 0:
        raise ValueError("delete_batch_size must be positive")

    deleted = 0
    with unit_of_work_factory() as uow:
        history = uow.repositories.address_history
        records = history.list_for_cleanup(jurisdiction_code=jurisdiction_code)
        groups = find_duplicate_groups(records)
        doomed = [record for group in groups for record in group.duplicates]
        log.info(
            "Found %s duplicate rows in %s groups among %s rows (jurisdiction=%s, dry_run=%s)",
            len(doomed),
            len(groups),
            len(records),
            jurisdiction_code or "all",
            dry_run,
        )

        if not dry_run:
            for chunk in batched(doomed, delete_batch_size):
                deleted += history.remove_many(chunk)
                uow.commit()
                log.info("Deleted %s/%s duplicate rows", deleted, len(doomed))

    return CleanupReport(
        dry_run=dry_run,
        jurisdiction_code=jurisdiction_code,
        rows_examined=len(records),
        duplicate_groups=len(groups),
        duplicate_rows=len(doomed),
        deleted=deleted,
        top_patterns=summarize_patterns(groups),
    )
