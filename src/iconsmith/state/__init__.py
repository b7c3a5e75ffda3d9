"""State persistence helpers for IconSmith."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Generic, Iterable, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import StateError, UnknownRecordError
from .models import (
    ActionType,
    ActivityEntry,
    Preset,
    RecentIcon,
    ScanFolder,
    UndoEntry,
    normalize_extension,
)

LOGGER = logging.getLogger(__name__)

FOLDERS_FILENAME = "folders.json"
PRESETS_FILENAME = "presets.json"
ACTIVITY_FILENAME = "activity.json"
LIBRARY_FILENAME = "library.json"

RecordT = TypeVar("RecordT", bound=BaseModel)


class JsonListStore(Generic[RecordT]):
    """Persist a list of records as a single JSON array.

    Loading and saving are best-effort: failures are logged and otherwise
    swallowed, so a failed load yields an empty list and a failed save drops
    the update.
    """

    def __init__(self, path: Path, model: Type[RecordT]) -> None:
        """Initialize the store.

        Args:
            path: JSON file backing the store.
            model: Record model used to validate each array element.
        """
        self._path = path
        self._model = model

    @property
    def path(self) -> Path:
        """Return the JSON file backing the store."""
        return self._path

    def load(self) -> List[RecordT]:
        """Return every record stored on disk, or an empty list on failure."""
        if not self._path.exists():
            return []
        try:
            return self.read()
        except StateError as exc:
            LOGGER.warning("Ignoring unreadable %s: %s", self._path, exc)
            return []

    def read(self) -> List[RecordT]:
        """Return every record stored on disk.

        Raises:
            StateError: If the file cannot be read or does not hold a valid record list.
        """
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"Invalid record data in {self._path}: {exc}") from exc
        if not isinstance(raw, list):
            raise StateError(f"{self._path} must contain a JSON array.")
        try:
            return [self._model.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise StateError(f"Invalid record data in {self._path}: {exc}") from exc

    def save(self, records: Iterable[RecordT]) -> bool:
        """Write ``records`` to disk, returning whether the write succeeded."""
        payload = [record.model_dump(mode="json", by_alias=True) for record in records]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Failed to persist %s: %s", self._path, exc)
            return False
        return True


__all__ = [
    "ACTIVITY_FILENAME",
    "FOLDERS_FILENAME",
    "LIBRARY_FILENAME",
    "PRESETS_FILENAME",
    "ActionType",
    "ActivityEntry",
    "JsonListStore",
    "Preset",
    "RecentIcon",
    "ScanFolder",
    "StateError",
    "UndoEntry",
    "UnknownRecordError",
    "normalize_extension",
]
