"""
Tests for the AvailabilityService orchestration layer.
"""

from typing import Optional

import pendulum
import pytest

from slotquery.domain.calendar import BlockedDate, CalendarSnapshot
from slotquery.domain.exceptions import QueryValidationError, SnapshotUnavailable
from slotquery.domain.query import AvailabilityQuery, DateRange
from slotquery.domain.query_engine import QueryEngine
from slotquery.services.availability import AvailabilityService

D1 = pendulum.date(2026, 1, 5)


class StubCalendarStore:
    """Minimal stub matching CalendarStoreProtocol."""

    def __init__(self, snapshot: Optional[CalendarSnapshot]):
        self._snapshot = snapshot
        self.loads = 0

    def load_snapshot(self) -> Optional[CalendarSnapshot]:
        self.loads += 1
        return self._snapshot


def _build_service(snapshot: Optional[CalendarSnapshot]) -> AvailabilityService:
    return AvailabilityService(store=StubCalendarStore(snapshot), engine=QueryEngine())


def test_run_uses_store_snapshot():
    """Blocked slots from the store are excluded from the result."""
    service = _build_service(CalendarSnapshot({D1: BlockedDate(full_day=True)}))
    query = AvailabilityQuery(
        intent="find_slots",
        date_range=DateRange(start=D1, end=D1.add(days=1)),
        count=2,
    )

    result = service.run(query)

    assert [item.date for item in result.items] == [D1.add(days=1)] * 2


def test_missing_snapshot_raises():
    """No stored data is reported, not turned into an empty result."""
    service = _build_service(None)
    query = AvailabilityQuery(intent="find_slots", date_range=DateRange(start=D1, end=D1))

    with pytest.raises(SnapshotUnavailable):
        service.run(query)


def test_run_payload_validates_before_loading():
    store = StubCalendarStore(CalendarSnapshot())
    service = AvailabilityService(store=store, engine=QueryEngine())

    with pytest.raises(QueryValidationError):
        service.run_payload({"intent": "find_slots"})

    assert store.loads == 0


def test_run_payload_uses_service_timezone():
    store = StubCalendarStore(CalendarSnapshot())
    service = AvailabilityService(store=store, engine=QueryEngine(), timezone="America/New_York")

    result = service.run_payload({
        "intent": "find_slots",
        "dateRange": {"start": "2026-01-06T02:00:00Z", "end": "2026-01-06T02:00:00Z"},
        "count": 1,
    })

    assert result.items[0].date == D1
    assert store.loads == 1
