"""Bounded, restorable history of icon changes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from iconsmith.icons.backend import IconBackend
from iconsmith.icons.imaging import is_image
from iconsmith.icons.markers import MarkerStore
from iconsmith.state import JsonListStore, UndoEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
STACK_FILENAME = "stack.json"


class UndoLedger:
    """Snapshot icon bytes before they change and restore them last-in, first-out.

    Entries are kept most-recent-first. The ledger owns the snapshot images in
    its directory; evicted and consumed entries have their snapshot deleted.
    """

    def __init__(
        self,
        directory: Path,
        backend: IconBackend,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        markers: Optional[MarkerStore] = None,
    ) -> None:
        """Initialize the ledger.

        Args:
            directory: Directory holding ``stack.json`` and snapshot images.
            backend: Icon primitives used to read and restore icons.
            max_entries: Maximum number of entries retained.
            markers: Marker store cleared when undo removes a custom icon.
        """
        self._directory = directory
        self._backend = backend
        self._max_entries = max(1, max_entries)
        self._markers = markers
        self._persistence = JsonListStore(directory / STACK_FILENAME, UndoEntry)
        self._entries: List[UndoEntry] = []

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def entries(self) -> List[UndoEntry]:
        return list(self._entries)

    @property
    def can_undo(self) -> bool:
        return bool(self._entries)

    def load(self) -> None:
        self._entries = self._persistence.load()

    def record_before_change(self, path: Path) -> UndoEntry:
        """Capture the current icon of ``path`` ahead of a change.

        Args:
            path: File about to have its icon applied or removed.

        Returns:
            UndoEntry: The entry pushed onto the ledger.
        """
        entry_id = uuid4()
        snapshot: Optional[Path] = None
        had_custom = self._backend.has_custom_icon(path)
        if had_custom:
            snapshot = self._snapshot(path, self._directory / f"{str(entry_id).upper()}.img")

        entry = UndoEntry(
            id=entry_id,
            file_path=str(path),
            had_custom_icon=had_custom,
            original_icon_path=str(snapshot) if snapshot else None,
        )
        self._entries.insert(0, entry)
        self._trim()
        self._save()
        return entry

    def undo(self) -> bool:
        """Restore the most recent entry, returning False when the ledger is empty."""
        if not self._entries:
            return False

        entry = self._entries.pop(0)
        target = Path(entry.file_path)
        image: Optional[bytes] = None
        if entry.had_custom_icon and entry.original_icon_path:
            try:
                image = Path(entry.original_icon_path).read_bytes()
            except OSError as exc:
                LOGGER.debug("Snapshot for %s unreadable: %s", target, exc)

        if entry.original_icon_path and image is None:
            LOGGER.warning("Could not restore icon for %s; snapshot missing", target)
        elif not self._backend.set_icon(target, image):
            LOGGER.debug("Icon restoration failed for %s", target)
        elif image is None and self._markers is not None:
            self._markers.unmark(target)

        self._discard_snapshot(entry)
        self._save()
        return True

    def clear_history(self) -> None:
        for entry in self._entries:
            self._discard_snapshot(entry)
        self._entries = []
        self._save()

    def _snapshot(self, path: Path, destination: Path) -> Optional[Path]:
        try:
            data = self._backend.current_icon(path)
            if not is_image(data):
                LOGGER.warning("Could not snapshot icon of %s: unreadable image", path)
                return None
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            LOGGER.warning("Could not snapshot icon of %s: %s", path, exc)
            return None
        return destination

    def _trim(self) -> None:
        while len(self._entries) > self._max_entries:
            self._discard_snapshot(self._entries.pop())

    def _discard_snapshot(self, entry: UndoEntry) -> None:
        if entry.original_icon_path is None:
            return
        try:
            Path(entry.original_icon_path).unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.debug("Could not delete snapshot %s: %s", entry.original_icon_path, exc)

    def _save(self) -> None:
        self._persistence.save(self._entries[: self._max_entries])


__all__ = ["UndoLedger", "DEFAULT_MAX_ENTRIES", "STACK_FILENAME"]
