"""Access to the icon a file is displayed with.

The backend is the only place that knows how a custom icon is physically
stored. ``ManagedIconBackend`` is a portable implementation that keeps custom
icons as image files under a managed directory, keyed by the file's resolved
path.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional, Protocol

from .imaging import is_image, placeholder_icon

LOGGER = logging.getLogger(__name__)


class IconBackend(Protocol):
    """OS-level icon primitives consumed by the core services."""

    def current_icon(self, path: Path) -> bytes:
        """Return the raw bytes of the icon ``path`` is displayed with."""

    def has_custom_icon(self, path: Path) -> bool:
        """Return whether ``path`` carries a custom icon."""

    def set_icon(self, path: Path, image: Optional[bytes]) -> bool:
        """Set (or clear, when ``image`` is None) the custom icon of ``path``."""


class ManagedIconBackend:
    """Store custom icons as image copies beneath ``root``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def current_icon(self, path: Path) -> bytes:
        stored = self._icon_path(path)
        if stored.exists():
            return stored.read_bytes()
        return placeholder_icon(path.suffix.lower().lstrip("."))

    def has_custom_icon(self, path: Path) -> bool:
        stored = self._icon_path(path)
        try:
            return stored.stat().st_size > 0
        except OSError:
            return False

    def set_icon(self, path: Path, image: Optional[bytes]) -> bool:
        if not path.exists():
            return False
        stored = self._icon_path(path)
        if image is None:
            try:
                stored.unlink(missing_ok=True)
            except OSError as exc:
                LOGGER.debug("Could not clear icon for %s: %s", path, exc)
                return False
            return True

        if not is_image(image):
            return False
        try:
            stored.parent.mkdir(parents=True, exist_ok=True)
            stored.write_bytes(image)
        except OSError as exc:
            LOGGER.debug("Could not store icon for %s: %s", path, exc)
            return False
        return True

    def _icon_path(self, path: Path) -> Path:
        key = hashlib.sha256(str(path.expanduser().resolve()).encode("utf-8")).hexdigest()
        return self._root / key[:2] / f"{key}.img"


__all__ = ["IconBackend", "ManagedIconBackend"]
