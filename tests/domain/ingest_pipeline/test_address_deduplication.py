from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from addresstrail.domain.ingest_pipeline.deduplication import (
    DedupAction,
    DeduplicationEngine,
    HistoryCounters,
)
from addresstrail.domain.model import (
    AddressHistoryRecord,
    AddressRole,
    AddressSnapshot,
    AsOfSource,
    duplicate_key,
)


def _snapshot(
    postal_code: str = "4950",
    *,
    role: AddressRole = AddressRole.BUSINESS,
    as_of: date = date(2010, 5, 1),
    observed_at: date = date(2026, 10, 19),
    line: str = "Strandgata 1",
) -> AddressSnapshot:
    return AddressSnapshot(
        organization_number="912345678",
        role=role,
        address_line=line,
        postal_code=postal_code,
        city="RISØR",
        jurisdiction_code="4201",
        jurisdiction_name="RISØR",
        as_of=as_of,
        as_of_source=AsOfSource.INCORPORATION,
        observed_at=observed_at,
    )


def _open_row(snapshot: AddressSnapshot) -> AddressHistoryRecord:
    return AddressHistoryRecord.from_snapshot(snapshot, company_id=uuid4())


def test_duplicate_key_normalizes_case_and_whitespace() -> None:
    assert duplicate_key(" 912345678 ", "  49 50 ", AddressRole.BUSINESS, is_current=True) == (
        "912345678",
        "49 50",
        AddressRole.BUSINESS,
        "current",
    )
    assert duplicate_key("x", None, AddressRole.POSTAL, is_current=False)[1:] == (
        "",
        AddressRole.POSTAL,
        "historical",
    )


def test_no_current_row_appends() -> None:
    engine = DeduplicationEngine()
    snapshot = _snapshot()

    decision = engine.decide(None, snapshot)
    change = engine.changes_for(decision, company_id=uuid4())

    assert decision.action is DedupAction.APPEND
    assert change.closing is None
    assert change.opened is not None
    assert change.opened.valid_from == snapshot.as_of
    assert change.opened.is_current


def test_same_key_is_ignored_even_when_spelling_differs() -> None:
    engine = DeduplicationEngine()
    current = _open_row(_snapshot("4950"))

    decision = engine.decide(current, _snapshot(" 4950 ", line="STRANDGATA 1"))

    assert decision.action is DedupAction.IGNORE
    assert engine.changes_for(decision, company_id=current.company_id).opened is None


def test_changed_postal_code_supersedes_current_row() -> None:
    engine = DeduplicationEngine()
    current = _open_row(_snapshot("4950", as_of=date(2010, 5, 1)))
    moved = _snapshot("0180", as_of=date(2024, 2, 1))

    decision = engine.decide(current, moved)
    change = engine.changes_for(decision, company_id=current.company_id)

    assert decision.action is DedupAction.SUPERSEDE
    assert change.closing is current
    assert change.closed_on == date(2024, 2, 1)
    assert change.opened is not None
    assert change.opened.postal_code == "0180"
    assert change.opened.valid_from == date(2024, 2, 1)


def test_stale_as_of_date_is_replaced_by_observation_date() -> None:
    engine = DeduplicationEngine()
    current = _open_row(_snapshot("4950", as_of=date(2010, 5, 1)))
    moved = _snapshot("0180", as_of=date(2010, 5, 1), observed_at=date(2026, 10, 19))

    decision = engine.decide(current, moved)

    assert decision.change_date == date(2026, 10, 19)


def test_engine_rejects_rows_of_another_role() -> None:
    engine = DeduplicationEngine()
    current = _open_row(_snapshot(role=AddressRole.POSTAL))

    with pytest.raises(ValueError, match="compared against"):
        engine.decide(current, _snapshot(role=AddressRole.BUSINESS))


def test_closed_row_cannot_be_closed_again() -> None:
    row = _open_row(_snapshot())
    row.close(date(2020, 1, 1))

    assert row.valid_to == date(2020, 1, 1)
    assert not row.is_current
    assert row.duplicate_key[-1] == "historical"
    with pytest.raises(ValueError, match="already closed"):
        row.close(date(2021, 1, 1))


def test_counters_tally_actions() -> None:
    counters = HistoryCounters()
    for action in (DedupAction.APPEND, DedupAction.IGNORE, DedupAction.IGNORE):
        counters.record(action)
    counters.merge(HistoryCounters(superseded=2))

    assert (counters.appended, counters.superseded, counters.ignored) == (1, 2, 2)
