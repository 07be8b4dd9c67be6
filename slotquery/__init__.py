"""
slotquery - find open time slots in a blocked-date calendar.
"""

__version__ = "0.1.0"
