"""
Calendar state: which dates and slots are blocked.

A date without a BlockedDate record is open for every slot.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

import pendulum
from pendulum import Date

from .time_slots import AFTERNOON_SLOTS, ALL_SLOTS, EVENING_SLOTS, MORNING_SLOTS, TimeSlot


def _is_utc_midnight(value: datetime) -> bool:
    return value.utcoffset() == timedelta(0) and value.time() == time.min


def to_calendar_date(value, timezone: Optional[str] = None) -> Date:
    """
    Normalize a date-like value to a calendar date key.

    Accepts dates, datetimes and ISO 8601 strings. Strings without an
    offset are read as local time in ``timezone``. Values with an offset
    are converted into ``timezone`` (when given) before the day is taken,
    except for midnight UTC, which is how serialized calendar dates
    arrive and is kept as the date it names.

    Raises:
        ValueError: If the value cannot be read as a calendar date
    """
    if isinstance(value, str):
        try:
            value = pendulum.parse(value, tz=timezone or "UTC", exact=True)
        except Exception as exc:
            raise ValueError(f"Could not parse date: {value!r}") from exc

    if isinstance(value, datetime):
        if timezone and value.tzinfo is not None and not _is_utc_midnight(value):
            value = pendulum.instance(value).in_timezone(timezone)
        return pendulum.date(value.year, value.month, value.day)

    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    raise ValueError(f"Not a calendar date: {value!r}")


@dataclass(frozen=True)
class BlockedDate:
    """
    Unavailability on one date: either the whole day or a set of slots.
    """
    full_day: bool = False
    slots: FrozenSet[TimeSlot] = field(default_factory=frozenset)
    event_name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.slots, frozenset):
            object.__setattr__(self, "slots", frozenset(self.slots))

    def blocks(self, slot: TimeSlot) -> bool:
        """Check whether the given slot is unavailable on this date."""
        return self.full_day or slot in self.slots

    @property
    def has_blocking(self) -> bool:
        return self.full_day or bool(self.slots)

    @classmethod
    def from_half_day(cls, status: str, event_name: Optional[str] = None) -> "BlockedDate":
        """
        Convert a legacy half-day status into slot blocks.

        'full' blocks the day, 'am' blocks the morning slots and 'pm'
        blocks the afternoon and evening slots.
        """
        if status == "full":
            return cls(full_day=True, event_name=event_name)
        if status == "am":
            return cls(slots=frozenset(MORNING_SLOTS), event_name=event_name)
        if status == "pm":
            return cls(slots=frozenset(AFTERNOON_SLOTS + EVENING_SLOTS), event_name=event_name)
        raise ValueError(f"Unknown half-day status: {status!r}")


class CalendarSnapshot(Mapping):
    """
    Immutable point-in-time view of blocked dates.

    Keys are calendar dates, values are BlockedDate records. Updating
    methods return new snapshots and leave this one untouched.
    """

    def __init__(self, blocked_dates: Optional[Mapping] = None):
        entries: Dict[Date, BlockedDate] = {}
        for key, blocked in (blocked_dates or {}).items():
            entries[to_calendar_date(key)] = blocked
        self._entries = entries

    def __getitem__(self, key) -> BlockedDate:
        return self._entries[to_calendar_date(key)]

    def __iter__(self) -> Iterator[Date]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        try:
            return to_calendar_date(key) in self._entries
        except ValueError:
            return False

    def get(self, key, default=None) -> Optional[BlockedDate]:
        return self._entries.get(to_calendar_date(key), default)

    def __repr__(self) -> str:
        return f"CalendarSnapshot({len(self._entries)} blocked dates)"

    def with_blocked(
        self,
        day,
        slots: Iterable[TimeSlot] = (),
        full_day: bool = False,
        event_name: Optional[str] = None,
    ) -> "CalendarSnapshot":
        """
        Return a new snapshot with additional blocking on ``day``.

        Slots are merged with any already blocked on that date.
        """
        key = to_calendar_date(day)
        existing = self._entries.get(key, BlockedDate())
        merged = BlockedDate(
            full_day=existing.full_day or full_day,
            slots=existing.slots | frozenset(slots),
            event_name=event_name or existing.event_name,
        )
        entries = dict(self._entries)
        entries[key] = merged
        return CalendarSnapshot(entries)

    def without(self, day, slots: Optional[Iterable[TimeSlot]] = None) -> "CalendarSnapshot":
        """
        Return a new snapshot with blocking removed on ``day``.

        Without ``slots`` the whole record is dropped. Removing slots from
        a full-day block keeps every other slot blocked.
        """
        key = to_calendar_date(day)
        entries = dict(self._entries)
        existing = entries.pop(key, None)

        if existing is not None and slots is not None:
            remaining = (frozenset(ALL_SLOTS) if existing.full_day else existing.slots) - frozenset(slots)
            if remaining:
                entries[key] = BlockedDate(slots=remaining, event_name=existing.event_name)

        return CalendarSnapshot(entries)

    def items_sorted(self) -> List[Tuple[Date, BlockedDate]]:
        return [(key, self._entries[key]) for key in sorted(self._entries)]


def is_open(snapshot: CalendarSnapshot, day: Date, slot: TimeSlot) -> bool:
    """
    Check whether a slot on a date is available.

    False iff the snapshot holds a record for the date that blocks the
    whole day or lists the slot; a date without a record is open.
    """
    blocked = snapshot.get(day)
    if blocked is None:
        return True
    return not blocked.blocks(slot)


def open_slots(snapshot: CalendarSnapshot, day: Date, slots: Iterable[TimeSlot]) -> List[TimeSlot]:
    """Filter ``slots`` down to the ones open on ``day``, keeping order."""
    return [slot for slot in slots if is_open(snapshot, day, slot)]


def consecutive_open(
    snapshot: CalendarSnapshot,
    day: Date,
    slot: TimeSlot,
    limit: Optional[int] = None,
) -> int:
    """
    Count open slots on ``day`` starting at ``slot`` in the fixed order.

    Stops at the first blocked slot, the end of the day, or once
    ``limit`` slots have been counted.
    """
    count = 0
    for candidate in ALL_SLOTS[ALL_SLOTS.index(slot):]:
        if limit is not None and count >= limit:
            break
        if not is_open(snapshot, day, candidate):
            break
        count += 1
    return count
