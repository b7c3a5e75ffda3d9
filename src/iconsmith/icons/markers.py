"""Out-of-band "applied by IconSmith" markers on files."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol, Set

LOGGER = logging.getLogger(__name__)

MARKER_ATTRIBUTE = "user.iconsmith.applied"
SIDECAR_FILENAME = "markers.json"


class MarkerStore(Protocol):
    """Tag files with an opaque presence marker."""

    def mark(self, path: Path) -> None:
        """Tag ``path``; failures are ignored."""

    def is_marked(self, path: Path) -> bool:
        """Return whether ``path`` carries the marker."""

    def unmark(self, path: Path) -> None:
        """Remove the marker from ``path``; failures are ignored."""


class XattrMarkerStore:
    """Keep markers in an extended file attribute."""

    def __init__(self, attribute: str = MARKER_ATTRIBUTE) -> None:
        self.attribute = attribute

    def mark(self, path: Path) -> None:
        try:
            os.setxattr(path, self.attribute, b"1")
        except OSError as exc:
            LOGGER.debug("Could not set marker on %s: %s", path, exc)

    def is_marked(self, path: Path) -> bool:
        try:
            return len(os.getxattr(path, self.attribute)) > 0
        except OSError:
            return False

    def unmark(self, path: Path) -> None:
        try:
            os.removexattr(path, self.attribute)
        except OSError as exc:
            LOGGER.debug("Could not remove marker from %s: %s", path, exc)


class SidecarMarkerStore:
    """Keep markers in a JSON index of normalized file paths.

    Renaming or moving a marked file orphans its entry.
    """

    def __init__(self, index_path: Path) -> None:
        self._index_path = index_path
        self._paths: Set[str] | None = None

    @property
    def index_path(self) -> Path:
        return self._index_path

    def mark(self, path: Path) -> None:
        paths = self._load()
        key = self._key(path)
        if key not in paths:
            paths.add(key)
            self._save(paths)

    def is_marked(self, path: Path) -> bool:
        return self._key(path) in self._load()

    def unmark(self, path: Path) -> None:
        paths = self._load()
        key = self._key(path)
        if key in paths:
            paths.discard(key)
            self._save(paths)

    def _key(self, path: Path) -> str:
        return str(path.expanduser().resolve())

    def _load(self) -> Set[str]:
        if self._paths is None:
            self._paths = set()
            if self._index_path.exists():
                try:
                    data = json.loads(self._index_path.read_text(encoding="utf-8"))
                    self._paths = {str(item) for item in data}
                except (OSError, ValueError, TypeError) as exc:
                    LOGGER.warning("Ignoring unreadable marker index %s: %s", self._index_path, exc)
        return self._paths

    def _save(self, paths: Set[str]) -> None:
        try:
            self._index_path.parent.mkdir(parents=True, exist_ok=True)
            self._index_path.write_text(json.dumps(sorted(paths), indent=2), encoding="utf-8")
        except OSError as exc:
            LOGGER.debug("Could not write marker index %s: %s", self._index_path, exc)


def default_marker_store(data_dir: Path) -> MarkerStore:
    """Return the xattr store where the platform supports it, else a sidecar index."""
    if hasattr(os, "setxattr"):
        return XattrMarkerStore()
    return SidecarMarkerStore(data_dir / SIDECAR_FILENAME)


__all__ = [
    "MARKER_ATTRIBUTE",
    "MarkerStore",
    "SidecarMarkerStore",
    "XattrMarkerStore",
    "default_marker_store",
]
