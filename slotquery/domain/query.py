"""
Structured query vocabulary and result value objects.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

from pendulum import Date

from .calendar import to_calendar_date
from .time_slots import TimePeriod, TimeSlot, format_slot

DEFAULT_COUNT = 10


class QueryIntent(str, Enum):
    """What the caller wants back."""
    FIND_SLOTS = "find_slots"
    FIND_DAYS = "find_days"
    SUGGEST_TIMES = "suggest_times"


class SlotDuration(str, Enum):
    """Minimum contiguous availability a matching slot must start."""
    ONE_HOUR = "1hour"
    HALF_DAY = "half-day"
    FULL_DAY = "full-day"

    @property
    def hours(self) -> int:
        return {"1hour": 1, "half-day": 6, "full-day": 16}[self.value]


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of calendar dates.

    Ordering of start and end is checked by the engine, not here.
    """
    start: Date
    end: Date

    def __post_init__(self):
        object.__setattr__(self, "start", to_calendar_date(self.start))
        object.__setattr__(self, "end", to_calendar_date(self.end))

    def span_days(self) -> int:
        """Number of days between start and end (0 for a single day)."""
        return self.end.toordinal() - self.start.toordinal()

    def __str__(self) -> str:
        return f"{self.start.to_date_string()} - {self.end.to_date_string()}"


@dataclass(frozen=True)
class AvailabilityQuery:
    """
    A structured availability request.

    ``intent`` stays a plain string until the engine checks it, so that
    unknown intents reach the engine and are reported there.
    """
    intent: Union[QueryIntent, str]
    date_range: DateRange
    time_preference: Optional[TimePeriod] = None
    count: Optional[int] = None
    slot_duration: Optional[SlotDuration] = None

    def normalized(self, default_count: int = DEFAULT_COUNT) -> "AvailabilityQuery":
        """Return a copy with defaults applied for omitted fields."""
        return replace(
            self,
            intent=QueryIntent(self.intent),
            time_preference=TimePeriod(self.time_preference or TimePeriod.ANY),
            count=default_count if self.count is None else self.count,
            slot_duration=SlotDuration(self.slot_duration or SlotDuration.ONE_HOUR),
        )


@dataclass(frozen=True, order=True)
class SlotMatch:
    """
    One open slot on one date.

    Sorts by date, then by slot.
    """
    date: Date
    slot: TimeSlot
    period: TimePeriod = field(compare=False)

    def format_display(self) -> str:
        """
        Format the match for display.
        Format: Weekday, DD.MM.YYYY | H:00 AM (period)
        """
        return f"{self.date.format('dddd, DD.MM.YYYY')} | {format_slot(self.slot)} ({self.period.value})"


@dataclass(frozen=True)
class MeetingSuggestion(SlotMatch):
    """A slot match ranked for meeting suitability."""
    score: float = field(default=0.0, compare=False)
    reason: str = field(default="", compare=False)


@dataclass(frozen=True)
class QueryResult:
    """
    Outcome of one query: the intent, ordered items and the normalized query.

    ``suggestions`` holds hints for the caller when nothing matched.
    """
    intent: QueryIntent
    items: Tuple
    query: AvailabilityQuery
    suggestions: Tuple[str, ...] = ()
