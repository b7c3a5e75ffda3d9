"""Persisted record models shared across IconSmith components."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_extension(value: str) -> str:
    """Return ``value`` lowercased with surrounding dots removed."""
    return value.strip().lower().strip(".")


class RecordModel(BaseModel):
    """Base model for records persisted as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionType(str, Enum):
    """Kinds of operations recorded in the activity log."""

    APPLIED = "applied"
    REMOVED = "removed"
    BATCH_APPLIED = "batchApplied"
    GENERATED = "generated"

    @property
    def display_name(self) -> str:
        return {
            ActionType.APPLIED: "Applied",
            ActionType.REMOVED: "Removed",
            ActionType.BATCH_APPLIED: "Batch Applied",
            ActionType.GENERATED: "Generated",
        }[self]


class ScanFolder(RecordModel):
    """A folder registered for scanning."""

    id: UUID = Field(default_factory=uuid4)
    path: str
    date_added: datetime = Field(default_factory=utcnow)
    last_scanned: Optional[datetime] = None
    file_count: Optional[int] = None

    @property
    def display_name(self) -> str:
        return Path(self.path).name

    @property
    def display_path(self) -> str:
        home = str(Path.home())
        if self.path == home or self.path.startswith(home + "/"):
            return "~" + self.path[len(home) :]
        return self.path


class Preset(RecordModel):
    """Saved mapping from file extension to icon id."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    mappings: Dict[str, UUID] = Field(default_factory=dict)
    date_created: datetime = Field(default_factory=utcnow)
    date_modified: datetime = Field(default_factory=utcnow)

    def set_mapping(self, extension: str, icon_id: UUID) -> None:
        self.mappings[normalize_extension(extension)] = icon_id
        self.date_modified = utcnow()

    def remove_mapping(self, extension: str) -> None:
        self.mappings.pop(normalize_extension(extension), None)
        self.date_modified = utcnow()

    def icon_for(self, extension: str) -> Optional[UUID]:
        return self.mappings.get(normalize_extension(extension))

    def duplicate(self) -> "Preset":
        """Return a copy with a fresh id and a "Copy" suffixed name."""
        return Preset(name=f"{self.name} Copy", mappings=dict(self.mappings))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Preset) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)


class ActivityEntry(RecordModel):
    """A completed icon operation, kept for display and auditing."""

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utcnow)
    action: ActionType
    file_paths: List[str] = Field(default_factory=list)
    icon_used: Optional[UUID] = None
    previous_icon_data: Optional[bytes] = None

    @field_validator("previous_icon_data", mode="before")
    @classmethod
    def _decode_icon_data(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer("previous_icon_data", when_used="json-unless-none")
    def _encode_icon_data(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    @property
    def file_count(self) -> int:
        return len(self.file_paths)

    @property
    def summary(self) -> str:
        if len(self.file_paths) == 1:
            return f"{self.action.display_name} icon for {Path(self.file_paths[0]).name}"
        return f"{self.action.display_name} icon for {len(self.file_paths)} files"


class UndoEntry(RecordModel):
    """Enough information to restore one file's prior icon."""

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utcnow)
    file_path: str
    had_custom_icon: bool
    original_icon_path: Optional[str] = None

    @model_validator(mode="after")
    def _snapshot_requires_custom_icon(self) -> "UndoEntry":
        if not self.had_custom_icon and self.original_icon_path is not None:
            raise ValueError("An entry without a prior custom icon cannot carry a snapshot.")
        return self


class RecentIcon(RecordModel):
    """An icon published to the shared recent-icons channel."""

    id: UUID
    name: str
    thumbnail_path: str


__all__ = [
    "ActionType",
    "ActivityEntry",
    "Preset",
    "RecentIcon",
    "RecordModel",
    "ScanFolder",
    "UndoEntry",
    "normalize_extension",
    "utcnow",
]
