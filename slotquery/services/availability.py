"""
Application service for answering availability queries.

The service loads a calendar snapshot via a store adapter and delegates
the actual computation to the domain-level ``QueryEngine``. This keeps the
CLI thin and lets tests swap in a stub store through a simple protocol.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from ..domain.calendar import CalendarSnapshot
from ..domain.exceptions import SnapshotUnavailable
from ..domain.query import AvailabilityQuery, QueryResult
from ..domain.query_engine import QueryEngine
from ..schemas import parse_query

logger = logging.getLogger(__name__)


class CalendarStoreProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the service."""

    def load_snapshot(self) -> Optional[CalendarSnapshot]:
        """Return the current calendar state, or None if there is none."""


class AvailabilityService:
    """
    Orchestrates snapshot loading and query execution.

    Dependency inversion toward a protocol makes it easy to plug in the
    JSON file store or an in-memory stub in tests.
    """

    def __init__(
        self,
        store: CalendarStoreProtocol,
        engine: QueryEngine,
        timezone: str = "UTC",
    ) -> None:
        self._store = store
        self._engine = engine
        self._timezone = timezone

    def load_snapshot(self) -> CalendarSnapshot:
        """
        Load the calendar state for one query.

        Raises:
            SnapshotUnavailable: If the store has no data
        """
        snapshot = self._store.load_snapshot()
        if snapshot is None:
            raise SnapshotUnavailable("No calendar data available")
        return snapshot

    def run(self, query: AvailabilityQuery) -> QueryResult:
        """Execute a structured query against the current calendar state."""
        snapshot = self.load_snapshot()
        result = self._engine.execute(query, snapshot)
        logger.info("%s returned %d item(s)", result.intent.value, len(result.items))
        return result

    def run_payload(self, payload: Any) -> QueryResult:
        """
        Validate a decoded JSON query and execute it.

        Validation happens before the store is touched, so a malformed
        query never triggers a load.
        """
        query = parse_query(payload, timezone=self._timezone)
        return self.run(query)
