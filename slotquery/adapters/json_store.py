"""
JSON file persistence for blocked-date calendar state.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pendulum

from ..domain.calendar import CalendarSnapshot
from ..domain.exceptions import StorageError
from ..schemas import DATA_VERSION, snapshot_from_wire, snapshot_to_wire

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


class JsonCalendarStore:
    """
    Loads and saves calendar state as a single JSON document.

    Every load builds a fresh snapshot from the file, so callers always get
    a coherent copy rather than a live view. Legacy version 1 documents are
    migrated on load and written back in version 2 form.
    """

    def __init__(self, path: Path, instructor_id: str = "default"):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
            instructor_id: Owner identifier written into saved documents
        """
        self.path = Path(path)
        self.instructor_id = instructor_id

    def _read_document(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Invalid JSON in {self.path}: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc

        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} must contain a JSON object at the root level.")
        return data

    def load_snapshot(self) -> Optional[CalendarSnapshot]:
        """
        Load the current calendar state.

        Returns:
            A snapshot, or None when no data has been stored yet

        Raises:
            StorageError: If the file exists but cannot be read
        """
        data = self._read_document()
        if data is None:
            return None

        try:
            snapshot = snapshot_from_wire(data)
        except ValueError as exc:
            raise StorageError(f"Invalid calendar data in {self.path}: {exc}") from exc

        if data.get("version") != DATA_VERSION:
            logger.info("Migrating %s to version %s format", self.path, DATA_VERSION)
            self.save_snapshot(snapshot)

        return snapshot

    def save_snapshot(self, snapshot: CalendarSnapshot) -> None:
        """
        Write the snapshot to disk in version 2 format.

        Raises:
            StorageError: If the file cannot be written
        """
        document = snapshot_to_wire(snapshot, instructor_id=self.instructor_id)
        self._write_document(document)

    def _write_document(self, document: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as file_handle:
                json.dump(document, file_handle, indent=2)
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}") from exc

    def export_data(self) -> str:
        """Return the stored state wrapped in an export envelope."""
        snapshot = self.load_snapshot()
        export = {
            "version": EXPORT_VERSION,
            "exportedAt": pendulum.now("UTC").to_iso8601_string(),
            "availability": (
                snapshot_to_wire(snapshot, instructor_id=self.instructor_id)
                if snapshot is not None else None
            ),
        }
        return json.dumps(export, indent=2)

    def import_data(self, json_data: str) -> CalendarSnapshot:
        """
        Replace the stored state with an exported document.

        Raises:
            StorageError: If the document is not a valid export
        """
        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Import failed: invalid JSON ({exc})") from exc

        if not isinstance(data, dict) or "availability" not in data:
            raise StorageError("Import failed: missing 'availability' section")

        availability = data["availability"]
        if availability is None:
            snapshot = CalendarSnapshot()
        else:
            try:
                snapshot = snapshot_from_wire(availability)
            except ValueError as exc:
                raise StorageError(f"Import failed: {exc}") from exc

        self.save_snapshot(snapshot)
        return snapshot

    def clear(self) -> None:
        """Remove all stored calendar data."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not remove {self.path}: {exc}") from exc
