"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, CalendarStoreProtocol

__all__ = ["AvailabilityService", "CalendarStoreProtocol"]
