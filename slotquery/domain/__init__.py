"""
Domain layer - Pure availability logic without external dependencies.
"""

from .calendar import BlockedDate, CalendarSnapshot, is_open
from .query import AvailabilityQuery, DateRange, QueryIntent, QueryResult, SlotMatch
from .query_engine import QueryEngine
from .time_slots import TimePeriod, TimeSlot

__all__ = [
    "AvailabilityQuery",
    "BlockedDate",
    "CalendarSnapshot",
    "DateRange",
    "QueryEngine",
    "QueryIntent",
    "QueryResult",
    "SlotMatch",
    "TimePeriod",
    "TimeSlot",
    "is_open",
]
