"""Icon library record models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List
from uuid import UUID, uuid4

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from iconsmith.state.models import RecordModel, utcnow


class IconCategory(str, Enum):
    """User-facing grouping of library icons."""

    CODE = "code"
    DESIGN = "design"
    SYSTEM = "system"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class IconSource(str, Enum):
    """Where a library icon came from; fixed once the record exists."""

    BUNDLED = "bundled"
    IMPORTED = "imported"
    AI_GENERATED = "aiGenerated"
    CLIPBOARD = "clipboard"

    @property
    def directory(self) -> str:
        return {
            IconSource.BUNDLED: "bundled",
            IconSource.IMPORTED: "imported",
            IconSource.AI_GENERATED: "generated",
            IconSource.CLIPBOARD: "clipboard",
        }[self]


class IconRecord(RecordModel):
    """A reusable icon image and its metadata.

    Records compare and hash by ``id`` only; two records may reference
    identical images.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_assignment=True
    )

    id: UUID = Field(default_factory=uuid4)
    name: str
    path: str
    category: IconCategory = IconCategory.CUSTOM
    source: IconSource = IconSource.IMPORTED
    date_added: datetime = Field(default_factory=utcnow)
    usage_count: int = Field(default=0, ge=0)
    associated_extensions: List[str] = Field(default_factory=list)

    @property
    def image_path(self) -> Path:
        return Path(self.path)

    def read_image(self) -> bytes:
        """Return the backing image bytes.

        Raises:
            OSError: If the backing file cannot be read.
        """
        return self.image_path.read_bytes()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IconRecord) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)
