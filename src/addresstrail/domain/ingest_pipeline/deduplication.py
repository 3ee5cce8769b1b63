"""Decide how a new address snapshot relates to a company's current address."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from addresstrail.domain.model import AddressHistoryRecord

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from addresstrail.domain.model import AddressSnapshot

log = getLogger(__name__)


class DedupAction(StrEnum):
    IGNORE = "ignore"
    APPEND = "append"
    SUPERSEDE = "supersede"


@dataclass(frozen=True, slots=True)
class DedupDecision:
    action: DedupAction
    snapshot: AddressSnapshot
    current: AddressHistoryRecord | None = None
    change_date: date | None = None


@dataclass(frozen=True, slots=True)
class HistoryChange:
    """Row writes implied by a decision: close ``closing`` on ``closed_on``, add ``opened``."""

    opened: AddressHistoryRecord | None = None
    closing: AddressHistoryRecord | None = None
    closed_on: date | None = None


@dataclass(slots=True)
class HistoryCounters:
    appended: int = 0
    superseded: int = 0
    ignored: int = 0

    def record(self, action: DedupAction) -> None:
        match action:
            case DedupAction.APPEND:
                self.appended += 1
            case DedupAction.SUPERSEDE:
                self.superseded += 1
            case DedupAction.IGNORE:
                self.ignored += 1

    def merge(self, other: HistoryCounters) -> None:
        self.appended += other.appended
        self.superseded += other.superseded
        self.ignored += other.ignored


class DeduplicationEngine:
    """Compare snapshots against open history rows by duplicate key.

    Snapshots are always keyed as current observations, so an unchanged address
    matches the open row and is ignored no matter how often it is re-ingested.
    """

    def decide(
        self,
        current: AddressHistoryRecord | None,
        snapshot: AddressSnapshot,
    ) -> DedupDecision:
        if current is None:
            return DedupDecision(DedupAction.APPEND, snapshot, change_date=snapshot.as_of)

        if (current.organization_number, current.role) != (
            snapshot.organization_number,
            snapshot.role,
        ):
            raise ValueError(
                f"Snapshot {snapshot.organization_number}/{snapshot.role} compared against "
                f"history row of {current.organization_number}/{current.role}"
            )

        if current.duplicate_key == snapshot.duplicate_key:
            return DedupDecision(DedupAction.IGNORE, snapshot, current=current)

        return DedupDecision(
            DedupAction.SUPERSEDE,
            snapshot,
            current=current,
            change_date=self._change_date(current, snapshot),
        )

    def changes_for(self, decision: DedupDecision, *, company_id: UUID) -> HistoryChange:
        """Translate ``decision`` into the history rows to close and open."""

        match decision.action:
            case DedupAction.IGNORE:
                return HistoryChange()
            case DedupAction.APPEND:
                opened = AddressHistoryRecord.from_snapshot(
                    decision.snapshot, company_id=company_id, valid_from=decision.change_date
                )
                return HistoryChange(opened=opened)
            case DedupAction.SUPERSEDE:
                opened = AddressHistoryRecord.from_snapshot(
                    decision.snapshot, company_id=company_id, valid_from=decision.change_date
                )
                return HistoryChange(
                    opened=opened,
                    closing=decision.current,
                    closed_on=decision.change_date,
                )

    @staticmethod
    def _change_date(current: AddressHistoryRecord, snapshot: AddressSnapshot) -> date:
        # incorporation/registration dates predate the open row and cannot date a move
        if snapshot.as_of > current.valid_from:
            return snapshot.as_of
        log.debug(
            "As-of date %s of %s/%s precedes open row start %s; dating change by observation",
            snapshot.as_of,
            snapshot.organization_number,
            snapshot.role,
            current.valid_from,
        )
        return max(snapshot.observed_at, current.valid_from)
