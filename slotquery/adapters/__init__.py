"""
Adapters layer - Storage of calendar state.
"""

from .json_store import JsonCalendarStore

__all__ = ["JsonCalendarStore"]
