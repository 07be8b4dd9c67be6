"""
Wire-level schemas for queries, results and stored calendar data.

Incoming JSON is validated here before anything reaches the query engine,
and engine results are turned back into JSON-ready dictionaries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

import pendulum
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .domain.calendar import BlockedDate, CalendarSnapshot, to_calendar_date
from .domain.exceptions import QueryValidationError
from .domain.query import (
    AvailabilityQuery,
    DateRange,
    MeetingSuggestion,
    QueryIntent,
    QueryResult,
    SlotDuration,
    SlotMatch,
)
from .domain.time_slots import TimePeriod, parse_slot

logger = logging.getLogger(__name__)

MAX_COUNT = 1000
DATA_VERSION = 2


class DateRangeModel(BaseModel):
    """Inclusive date range; accepts ISO dates or datetimes."""
    start: Any
    end: Any

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_date(cls, value: Any, info: ValidationInfo):
        """Normalize to a calendar date in the caller's timezone."""
        timezone = (info.context or {}).get("timezone")
        return to_calendar_date(value, timezone)


class AvailabilityQueryModel(BaseModel):
    """JSON shape of an availability query."""
    model_config = ConfigDict(populate_by_name=True)

    intent: QueryIntent
    date_range: DateRangeModel = Field(alias="dateRange")
    time_preference: Optional[TimePeriod] = Field(default=None, alias="timePreference")
    slot_duration: Optional[SlotDuration] = Field(default=None, alias="slotDuration")
    # Positivity is checked by the engine
    count: Optional[StrictInt] = Field(default=None, le=MAX_COUNT)

    def to_query(self) -> AvailabilityQuery:
        return AvailabilityQuery(
            intent=self.intent,
            date_range=DateRange(start=self.date_range.start, end=self.date_range.end),
            time_preference=self.time_preference,
            count=self.count,
            slot_duration=self.slot_duration,
        )


class SlotStatusModel(BaseModel):
    """Stored per-date slot map; slots travel as [slot, blocked] pairs."""
    model_config = ConfigDict(populate_by_name=True)

    slots: List[Tuple[str, bool]] = Field(default_factory=list)
    full_day_block: bool = Field(default=False, alias="fullDayBlock")
    event_name: Optional[str] = Field(default=None, alias="eventName", max_length=200)

    @field_validator("slots", mode="before")
    @classmethod
    def accept_mapping(cls, value: Any) -> Any:
        """Allow {'09:00': true} as well as [['09:00', true]]."""
        if isinstance(value, dict):
            return list(value.items())
        return value

    def to_blocked_date(self) -> BlockedDate:
        return BlockedDate(
            full_day=self.full_day_block,
            slots=frozenset(parse_slot(slot) for slot, blocked in self.slots if blocked),
            event_name=self.event_name,
        )


class LegacyBlockedDateModel(BaseModel):
    """Version 1 record: whole-day or half-day blocking."""
    model_config = ConfigDict(populate_by_name=True)

    date: Optional[str] = None
    status: Literal["full", "am", "pm"]
    event_name: Optional[str] = Field(default=None, alias="eventName")

    def to_blocked_date(self) -> BlockedDate:
        return BlockedDate.from_half_day(self.status, event_name=self.event_name)


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one 'path: message; ...' line."""
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return f"Validation failed: {'; '.join(messages)}"


def parse_query(payload: Any, timezone: str = "UTC") -> AvailabilityQuery:
    """
    Validate a JSON payload and build an AvailabilityQuery.

    Args:
        payload: Decoded JSON object
        timezone: Timezone used to take the calendar day of datetimes

    Raises:
        QueryValidationError: If the payload does not match the schema
    """
    try:
        model = AvailabilityQueryModel.model_validate(payload, context={"timezone": timezone})
    except ValidationError as exc:
        raise QueryValidationError(format_validation_error(exc)) from exc
    return model.to_query()


def query_to_wire(query: AvailabilityQuery) -> Dict[str, Any]:
    """Encode a (normalized) query for JSON output."""
    data: Dict[str, Any] = {
        "intent": _value(query.intent),
        "dateRange": {
            "start": query.date_range.start.to_date_string(),
            "end": query.date_range.end.to_date_string(),
        },
    }
    if query.time_preference is not None:
        data["timePreference"] = _value(query.time_preference)
    if query.slot_duration is not None:
        data["slotDuration"] = _value(query.slot_duration)
    if query.count is not None:
        data["count"] = query.count
    return data


def result_to_wire(result: QueryResult) -> Dict[str, Any]:
    """Encode a query result for JSON output."""
    return {
        "intent": result.intent.value,
        "items": [_item_to_wire(item) for item in result.items],
        "query": query_to_wire(result.query),
        "suggestions": list(result.suggestions),
    }


def _item_to_wire(item: Any) -> Any:
    if isinstance(item, SlotMatch):
        data: Dict[str, Any] = {
            "date": item.date.to_date_string(),
            "time": item.slot.label,
            "period": item.period.value,
        }
        if isinstance(item, MeetingSuggestion):
            data["score"] = round(item.score, 4)
            data["reason"] = item.reason
        return data
    return item.to_date_string()


def _value(member: Any) -> Any:
    return getattr(member, "value", member)


def snapshot_from_wire(data: Any) -> CalendarSnapshot:
    """
    Rebuild a snapshot from stored JSON.

    Version 2 data keeps a mapping of date -> slot status. Version 1 data
    (a list of half-day records, or such records inside the mapping) is
    migrated on the fly. Malformed entries are skipped with a warning.

    Raises:
        ValueError: If the root object is not a mapping
    """
    if not isinstance(data, dict):
        raise ValueError("Calendar data must be a JSON object")

    raw_entries = data.get("blockedDates") or {}
    if isinstance(raw_entries, list):
        raw_entries = {entry.get("date"): entry for entry in raw_entries if isinstance(entry, dict)}

    if not isinstance(raw_entries, dict):
        raise ValueError("blockedDates must be an object or a list")

    blocked: Dict[Any, BlockedDate] = {}
    for key, entry in raw_entries.items():
        try:
            day = to_calendar_date(key)
            blocked[day] = _entry_to_blocked_date(entry)
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Skipping invalid blocked date entry %r: %s", key, exc)
            continue

    return CalendarSnapshot(blocked)


def _entry_to_blocked_date(entry: Any) -> BlockedDate:
    if isinstance(entry, dict) and "status" in entry and "slots" not in entry:
        return LegacyBlockedDateModel.model_validate(entry).to_blocked_date()
    return SlotStatusModel.model_validate(entry).to_blocked_date()


def snapshot_to_wire(
    snapshot: CalendarSnapshot,
    instructor_id: str = "default",
    last_modified: Optional[str] = None,
) -> Dict[str, Any]:
    """Encode a snapshot in the version 2 storage format."""
    blocked_dates: Dict[str, Any] = {}
    for day, blocked in snapshot.items_sorted():
        entry: Dict[str, Any] = {
            "slots": [[slot.label, True] for slot in sorted(blocked.slots)],
            "fullDayBlock": blocked.full_day,
        }
        if blocked.event_name:
            entry["eventName"] = blocked.event_name
        blocked_dates[day.to_date_string()] = entry

    return {
        "version": DATA_VERSION,
        "instructorId": instructor_id,
        "lastModified": last_modified or pendulum.now("UTC").to_iso8601_string(),
        "blockedDates": blocked_dates,
    }
