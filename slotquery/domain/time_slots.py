"""
Fixed universe of schedulable hourly slots and their grouping into periods.

Sixteen one-hour slots run from 06:00 to 21:00 (the last one covers
21:00-22:00). The period mapping is static configuration.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

FIRST_HOUR = 6
LAST_HOUR = 21


@dataclass(frozen=True, order=True)
class TimeSlot:
    """
    An hour-aligned time of day inside the schedulable range.

    Invariant: FIRST_HOUR <= hour <= LAST_HOUR.
    """
    hour: int

    def __post_init__(self):
        if not FIRST_HOUR <= self.hour <= LAST_HOUR:
            raise ValueError(
                f"Time slot hour must be between {FIRST_HOUR} and {LAST_HOUR}, got {self.hour}"
            )

    @property
    def label(self) -> str:
        """24-hour key, e.g. '09:00'."""
        return f"{self.hour:02d}:00"

    def __str__(self) -> str:
        return self.label


class TimePeriod(str, Enum):
    """Named groups of time slots."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


ALL_SLOTS: Tuple[TimeSlot, ...] = tuple(
    TimeSlot(hour) for hour in range(FIRST_HOUR, LAST_HOUR + 1)
)

MORNING_SLOTS: Tuple[TimeSlot, ...] = ALL_SLOTS[0:6]      # 06:00 - 11:00
AFTERNOON_SLOTS: Tuple[TimeSlot, ...] = ALL_SLOTS[6:12]   # 12:00 - 17:00
EVENING_SLOTS: Tuple[TimeSlot, ...] = ALL_SLOTS[12:16]    # 18:00 - 21:00

PERIOD_SLOTS: Dict[TimePeriod, Tuple[TimeSlot, ...]] = {
    TimePeriod.MORNING: MORNING_SLOTS,
    TimePeriod.AFTERNOON: AFTERNOON_SLOTS,
    TimePeriod.EVENING: EVENING_SLOTS,
    TimePeriod.ANY: ALL_SLOTS,
}

PERIOD_LABELS: Dict[TimePeriod, str] = {
    TimePeriod.MORNING: "Morning (6am - 12pm)",
    TimePeriod.AFTERNOON: "Afternoon (12pm - 6pm)",
    TimePeriod.EVENING: "Evening (6pm - 10pm)",
    TimePeriod.ANY: "Any Time",
}

_INDEX: Dict[TimeSlot, int] = {slot: index for index, slot in enumerate(ALL_SLOTS)}


def parse_slot(value: str) -> TimeSlot:
    """
    Parse an 'HH:MM' key into a TimeSlot.

    Raises:
        ValueError: If the value is malformed, not hour-aligned or out of range
    """
    try:
        hour_str, minute_str = value.strip().split(":")
        hour, minute = int(hour_str), int(minute_str)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Time slot must be in HH:MM format, got {value!r}") from exc

    if minute != 0:
        raise ValueError(f"Time slot must be hour-aligned, got {value!r}")

    return TimeSlot(hour)


def period_of(slot: TimeSlot) -> TimePeriod:
    """Return the period (morning/afternoon/evening) containing the slot."""
    for period in (TimePeriod.MORNING, TimePeriod.AFTERNOON, TimePeriod.EVENING):
        if slot in PERIOD_SLOTS[period]:
            return period
    raise ValueError(f"Slot {slot} is outside the schedulable range")


def slots_for(period: TimePeriod) -> Tuple[TimeSlot, ...]:
    """Return the ordered slots of a period; 'any' yields all 16."""
    return PERIOD_SLOTS[TimePeriod(period)]


def successor(slot: TimeSlot) -> TimeSlot | None:
    """Next slot in the fixed order, or None after the last one."""
    index = _INDEX[slot] + 1
    return ALL_SLOTS[index] if index < len(ALL_SLOTS) else None


def predecessor(slot: TimeSlot) -> TimeSlot | None:
    """Previous slot in the fixed order, or None before the first one."""
    index = _INDEX[slot] - 1
    return ALL_SLOTS[index] if index >= 0 else None


def format_slot(slot: TimeSlot) -> str:
    """
    Format a slot for display in 12-hour style.

    '09:00' -> '9:00 AM', '12:00' -> '12:00 PM', '14:00' -> '2:00 PM'
    """
    suffix = "PM" if slot.hour >= 12 else "AM"
    display_hour = slot.hour - 12 if slot.hour > 12 else slot.hour
    return f"{display_hour}:00 {suffix}"


def is_business_hours(slot: TimeSlot) -> bool:
    """True for slots starting between 9am and 4pm."""
    return 9 <= slot.hour < 17
