"""Persistent icon library."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, List, Optional
from uuid import UUID, uuid4

from PIL import Image, ImageGrab

from iconsmith.icons.imaging import ImageDecodeError, encode_png, to_png
from iconsmith.state import LIBRARY_FILENAME, JsonListStore

from .errors import DecodingFailedError, IconImportError, LibraryError
from .models import IconCategory, IconRecord, IconSource

LOGGER = logging.getLogger(__name__)

ClipboardGrabber = Callable[[], Any]


class IconStore:
    """Map icon ids to records and own the backing image files.

    Every mutating call persists the full record list before returning.
    """

    def __init__(
        self,
        data_dir: Path,
        *,
        clipboard: ClipboardGrabber | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            data_dir: Application data directory; images live under ``Icons/``.
            clipboard: Callable returning the clipboard contents, defaults to
                Pillow's ``ImageGrab.grabclipboard``.
        """
        self._data_dir = data_dir
        self._persistence = JsonListStore(data_dir / LIBRARY_FILENAME, IconRecord)
        self._clipboard = clipboard or ImageGrab.grabclipboard
        self._icons: List[IconRecord] = []

    @property
    def icons_dir(self) -> Path:
        return self._data_dir / "Icons"

    def load(self) -> None:
        """Replace the in-memory records with those stored on disk."""
        self._icons = self._persistence.load()
        LOGGER.debug("Loaded %d library icons", len(self._icons))

    def save(self) -> None:
        self._persistence.save(self._icons)

    def __len__(self) -> int:
        return len(self._icons)

    def lookup(self, icon_id: UUID) -> Optional[IconRecord]:
        return next((icon for icon in self._icons if icon.id == icon_id), None)

    def list(self, category: Optional[IconCategory] = None) -> List[IconRecord]:
        if category is None:
            return list(self._icons)
        return [icon for icon in self._icons if icon.category == category]

    def search(self, text: str) -> List[IconRecord]:
        """Return icons whose name contains ``text``, ignoring case."""
        if not text:
            return list(self._icons)
        needle = text.casefold()
        return [icon for icon in self._icons if needle in icon.name.casefold()]

    def add(self, record: IconRecord) -> None:
        self._icons.append(record)
        self.save()

    def remove(self, icon_id: UUID) -> None:
        """Delete the record and its backing image; unknown ids are ignored."""
        record = self.lookup(icon_id)
        if record is None:
            return
        try:
            record.image_path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.debug("Could not delete image for icon %s: %s", icon_id, exc)
        self._icons = [icon for icon in self._icons if icon.id != icon_id]
        self.save()

    def update(self, icon_id: UUID, mutator: Callable[[IconRecord], None]) -> None:
        """Apply ``mutator`` to a copy of the record and store the result.

        Raises:
            LibraryError: If the mutator changes the record's id or source.
        """
        for index, icon in enumerate(self._icons):
            if icon.id != icon_id:
                continue
            updated = icon.model_copy(deep=True)
            mutator(updated)
            if updated.id != icon.id or updated.source != icon.source:
                raise LibraryError("The id and source of an icon cannot be changed.")
            self._icons[index] = updated
            self.save()
            return

    def increment_usage(self, icon_id: UUID) -> None:
        def _bump(icon: IconRecord) -> None:
            icon.usage_count += 1

        self.update(icon_id, _bump)

    def import_from_path(
        self,
        source_path: Path,
        name: str,
        category: IconCategory = IconCategory.CUSTOM,
    ) -> IconRecord:
        """Copy ``source_path`` into the library and register it.

        Raises:
            IconImportError: If the image cannot be copied.
        """
        icon_id = uuid4()
        destination = self._destination(IconSource.IMPORTED, icon_id, source_path.suffix)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, destination)
        except OSError as exc:
            raise IconImportError(f"Failed to import {source_path}: {exc}") from exc

        record = IconRecord(
            id=icon_id,
            name=name,
            path=str(destination),
            category=category,
            source=IconSource.IMPORTED,
        )
        self.add(record)
        LOGGER.info("Imported icon %s from %s", record.id, source_path)
        return record

    def import_from_clipboard(
        self,
        name: str,
        category: IconCategory = IconCategory.CUSTOM,
    ) -> Optional[IconRecord]:
        """Store the clipboard image as PNG, returning None if there is no image.

        Raises:
            DecodingFailedError: If the clipboard image cannot be encoded.
            IconImportError: If the encoded image cannot be written.
        """
        content = self._clipboard()
        if isinstance(content, list):
            content = self._first_image_file(content)
        if not isinstance(content, Image.Image):
            return None
        try:
            data = encode_png(content)
        except (OSError, ValueError) as exc:
            raise DecodingFailedError(f"Could not encode clipboard image: {exc}") from exc
        return self._store_bytes(data, name, category, IconSource.CLIPBOARD)

    def add_generated(
        self,
        image: bytes,
        name: str,
        category: IconCategory = IconCategory.CUSTOM,
    ) -> IconRecord:
        """Store an AI-generated image as PNG.

        Raises:
            DecodingFailedError: If ``image`` is not a readable image.
        """
        try:
            data = to_png(image)
        except ImageDecodeError as exc:
            raise DecodingFailedError(str(exc)) from exc
        return self._store_bytes(data, name, category, IconSource.AI_GENERATED)

    def _store_bytes(
        self,
        data: bytes,
        name: str,
        category: IconCategory,
        source: IconSource,
    ) -> IconRecord:
        icon_id = uuid4()
        destination = self._destination(source, icon_id, ".png")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            raise IconImportError(f"Failed to store icon {name!r}: {exc}") from exc
        record = IconRecord(
            id=icon_id, name=name, path=str(destination), category=category, source=source
        )
        self.add(record)
        return record

    def _destination(self, source: IconSource, icon_id: UUID, suffix: str) -> Path:
        return self.icons_dir / source.directory / f"{str(icon_id).upper()}{suffix.lower()}"

    def _first_image_file(self, filenames: List[str]) -> Optional[Image.Image]:
        for filename in filenames:
            try:
                with Image.open(filename) as img:
                    img.load()
                    return img.copy()
            except (OSError, ValueError):
                continue
        return None


__all__ = ["ClipboardGrabber", "IconStore"]
