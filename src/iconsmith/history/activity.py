"""Activity log and the shared recent-icons channel."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from iconsmith.icons.imaging import ImageDecodeError, thumbnail_png
from iconsmith.library.models import IconRecord
from iconsmith.state import ACTIVITY_FILENAME, ActivityEntry, JsonListStore, RecentIcon

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_MAX_RECENT = 10
RECENT_ICONS_FILENAME = "recent-icons.json"


class ActivityLog:
    """Append-only, bounded record of completed operations, newest first."""

    def __init__(self, data_dir: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._persistence = JsonListStore(data_dir / ACTIVITY_FILENAME, ActivityEntry)
        self._max_entries = max(1, max_entries)
        self._entries: List[ActivityEntry] = []

    @property
    def entries(self) -> List[ActivityEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> None:
        self._entries = self._persistence.load()[: self._max_entries]

    def append(self, entry: ActivityEntry) -> None:
        self._entries.insert(0, entry)
        del self._entries[self._max_entries :]
        self._persistence.save(self._entries)

    def recent(self, limit: int) -> List[ActivityEntry]:
        return self._entries[: max(0, limit)]


class RecentIconsPublisher:
    """Publish recently used icons for companion processes.

    Writes one PNG thumbnail per icon under ``Icons/`` and keeps
    ``recent-icons.json`` de-duplicated by id, most recent first.
    """

    def __init__(self, shared_dir: Path, *, max_entries: int = DEFAULT_MAX_RECENT) -> None:
        self._shared_dir = shared_dir
        self._max_entries = max(1, max_entries)
        self._persistence = JsonListStore(shared_dir / RECENT_ICONS_FILENAME, RecentIcon)

    def recent(self) -> List[RecentIcon]:
        return self._persistence.load()

    def publish(self, icon: IconRecord) -> bool:
        """Publish ``icon``; returns False if its thumbnail could not be written."""
        thumbnail = self._shared_dir / "Icons" / f"{str(icon.id).upper()}.png"
        try:
            data = thumbnail_png(icon.read_image())
            thumbnail.parent.mkdir(parents=True, exist_ok=True)
            thumbnail.write_bytes(data)
        except (OSError, ImageDecodeError) as exc:
            LOGGER.warning("Could not publish recent icon %s: %s", icon.id, exc)
            return False

        recent = [item for item in self._persistence.load() if item.id != icon.id]
        recent.insert(0, RecentIcon(id=icon.id, name=icon.name, thumbnail_path=str(thumbnail)))
        return self._persistence.save(recent[: self._max_entries])


__all__ = [
    "ActivityLog",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_MAX_RECENT",
    "RECENT_ICONS_FILENAME",
    "RecentIconsPublisher",
]
