"""
Core business logic for answering availability queries.

This is the heart of the application - a pure function of a query and a
calendar snapshot. No clock, no I/O, no configuration is read here.
"""

import logging
from itertools import islice
from typing import Iterator, List, Optional

from pendulum import Date

from .calendar import CalendarSnapshot, consecutive_open, is_open, open_slots
from .exceptions import (
    DateRangeTooLarge,
    InvalidCount,
    InvalidDateRange,
    InvalidQuery,
    UnsupportedIntent,
)
from .query import (
    DEFAULT_COUNT,
    AvailabilityQuery,
    MeetingSuggestion,
    QueryIntent,
    QueryResult,
    SlotDuration,
    SlotMatch,
)
from .time_slots import ALL_SLOTS, TimePeriod, period_of, slots_for

logger = logging.getLogger(__name__)

MAX_DATE_RANGE_DAYS = 90


class QueryEngine:
    """
    Executes structured availability queries against a calendar snapshot.

    Intents:
    1. find_slots - open (date, slot) pairs, earliest first, capped by count
    2. find_days - dates without any blocked slot
    3. suggest_times - open slots ranked by contiguous availability

    The engine keeps no state between calls; the same query against the
    same snapshot always yields the same result.
    """

    def __init__(
        self,
        max_range_days: Optional[int] = MAX_DATE_RANGE_DAYS,
        default_count: int = DEFAULT_COUNT,
    ):
        self.max_range_days = max_range_days
        self.default_count = default_count

    def execute(self, query: AvailabilityQuery, snapshot: CalendarSnapshot) -> QueryResult:
        """
        Run one query against one snapshot.

        Args:
            query: The structured request
            snapshot: Blocked-date state; never modified

        Returns:
            QueryResult with the ordered items and the normalized query

        Raises:
            UnsupportedIntent: If the intent is not recognized
            InvalidDateRange: If the range starts after it ends or is too long
            InvalidCount: If count is not a positive integer
            InvalidQuery: If the time preference or slot duration is unknown
        """
        self._validate_intent(query.intent)
        self._validate_date_range(query)
        self._validate_count(query.count)
        self._validate_vocabulary(query)

        normalized = query.normalized(default_count=self.default_count)

        logger.debug(
            "Executing %s over %s (preference=%s, count=%s)",
            normalized.intent.value,
            normalized.date_range,
            normalized.time_preference.value,
            normalized.count,
        )

        if normalized.intent is QueryIntent.FIND_SLOTS:
            return self._find_slots(normalized, snapshot)
        if normalized.intent is QueryIntent.FIND_DAYS:
            return self._find_days(normalized, snapshot)
        return self._suggest_times(normalized, snapshot)

    # Validation

    def _validate_intent(self, intent) -> None:
        try:
            QueryIntent(intent)
        except ValueError:
            known = ", ".join(i.value for i in QueryIntent)
            raise UnsupportedIntent(
                f"Unknown query intent: {intent!r}. Expected one of: {known}"
            ) from None

    def _validate_date_range(self, query: AvailabilityQuery) -> None:
        date_range = query.date_range

        if date_range.start > date_range.end:
            raise InvalidDateRange(
                f"Invalid date range: start {date_range.start.to_date_string()} "
                f"is after end {date_range.end.to_date_string()}"
            )

        if self.max_range_days is not None and date_range.span_days() > self.max_range_days:
            raise DateRangeTooLarge(
                f"Date range too large: {date_range.span_days()} days exceeds "
                f"maximum of {self.max_range_days} days"
            )

    def _validate_count(self, count) -> None:
        if count is None:
            return
        # bool is an int subclass
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidCount(f"Count must be a positive integer, got {count!r}")
        if count <= 0:
            raise InvalidCount(f"Count must be a positive integer, got {count}")

    def _validate_vocabulary(self, query: AvailabilityQuery) -> None:
        for value, vocabulary, name in (
            (query.time_preference, TimePeriod, "time preference"),
            (query.slot_duration, SlotDuration, "slot duration"),
        ):
            if value is None:
                continue
            try:
                vocabulary(value)
            except ValueError:
                known = ", ".join(member.value for member in vocabulary)
                raise InvalidQuery(
                    f"Unknown {name}: {value!r}. Expected one of: {known}"
                ) from None

    # Intents

    def _find_slots(self, query: AvailabilityQuery, snapshot: CalendarSnapshot) -> QueryResult:
        """
        Collect open slots in date order, then slot order.

        Enumeration stops as soon as ``count`` matches are found.
        """
        matches = list(islice(self._iter_open_slots(query, snapshot), query.count))

        return QueryResult(
            intent=QueryIntent.FIND_SLOTS,
            items=tuple(matches),
            query=query,
            suggestions=self._suggestions(query, snapshot) if not matches else (),
        )

    def _find_days(self, query: AvailabilityQuery, snapshot: CalendarSnapshot) -> QueryResult:
        """Collect dates where no slot is blocked."""
        days: List[Date] = []

        for day in self._iter_dates(query):
            blocked = snapshot.get(day)
            if blocked is None or not blocked.has_blocking:
                days.append(day)
                if len(days) >= query.count:
                    break

        return QueryResult(
            intent=QueryIntent.FIND_DAYS,
            items=tuple(days),
            query=query,
            suggestions=self._suggestions(query, snapshot) if not days else (),
        )

    def _suggest_times(self, query: AvailabilityQuery, snapshot: CalendarSnapshot) -> QueryResult:
        """
        Rank every open slot and return the best ``count`` of them.

        Score:
        - contiguous open hours from the slot, out of 16
        - +0.1 when the slot falls in the preferred period
        - up to +0.1 for dates closer to the start of the range
        """
        suggestions = [
            self._score(match, query, snapshot)
            for match in self._iter_open_slots(query, snapshot)
        ]

        suggestions.sort(key=lambda s: (-s.score, s.date, s.slot))
        ranked = suggestions[:query.count]

        return QueryResult(
            intent=QueryIntent.SUGGEST_TIMES,
            items=tuple(ranked),
            query=query,
            suggestions=self._suggestions(query, snapshot) if not ranked else (),
        )

    # Helpers

    def _iter_dates(self, query: AvailabilityQuery) -> Iterator[Date]:
        current = query.date_range.start
        while current <= query.date_range.end:
            yield current
            current = current.add(days=1)

    def _iter_open_slots(
        self,
        query: AvailabilityQuery,
        snapshot: CalendarSnapshot,
    ) -> Iterator[SlotMatch]:
        """
        Lazily yield open slots matching the period and duration.

        Lazy so that callers taking only the first N stop evaluating.
        """
        candidates = slots_for(query.time_preference)
        required_hours = query.slot_duration.hours

        for day in self._iter_dates(query):
            for slot in candidates:
                if not is_open(snapshot, day, slot):
                    continue
                if required_hours > 1 and consecutive_open(snapshot, day, slot, limit=required_hours) < required_hours:
                    continue
                yield SlotMatch(date=day, slot=slot, period=period_of(slot))

    def _score(
        self,
        match: SlotMatch,
        query: AvailabilityQuery,
        snapshot: CalendarSnapshot,
    ) -> MeetingSuggestion:
        consecutive = consecutive_open(snapshot, match.date, match.slot)
        base_score = min(consecutive / len(ALL_SLOTS), 1.0)

        matches_preference = (
            query.time_preference is not TimePeriod.ANY
            and match.period is query.time_preference
        )
        preference_bonus = 0.1 if matches_preference else 0.0

        max_days = query.date_range.span_days()
        days_from_start = match.date.toordinal() - query.date_range.start.toordinal()
        recency_bonus = (1 - days_from_start / max_days) * 0.1 if max_days > 0 else 0.0

        reason = f"{consecutive} consecutive hour{'s' if consecutive != 1 else ''} available"
        if matches_preference:
            reason += f", matches {query.time_preference.value} preference"

        return MeetingSuggestion(
            date=match.date,
            slot=match.slot,
            period=match.period,
            score=min(base_score + preference_bonus + recency_bonus, 1.0),
            reason=reason,
        )

    def _suggestions(self, query: AvailabilityQuery, snapshot: CalendarSnapshot) -> tuple:
        """
        Hints for a query that matched nothing.

        Checks whether anything at all is open in the range before
        suggesting narrower relaxations.
        """
        anything_open = any(
            open_slots(snapshot, day, ALL_SLOTS)
            for day in self._iter_dates(query)
        )

        if not anything_open:
            return ("Try expanding your date range - no availability found in the current period",)

        hints: List[str] = []
        # find_days ignores preference and duration
        if query.intent is not QueryIntent.FIND_DAYS and query.time_preference is not TimePeriod.ANY:
            hints.append(
                f"Try removing the {query.time_preference.value} time preference - "
                "availability exists at other times"
            )
        if query.intent is not QueryIntent.FIND_DAYS and query.slot_duration is not SlotDuration.ONE_HOUR:
            hints.append("Try 1-hour slots instead - longer blocks may not be available")
        if query.intent is QueryIntent.FIND_DAYS:
            hints.append("Try searching for individual slots - no day in the range is fully open")
        return tuple(hints)
