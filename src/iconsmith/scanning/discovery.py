"""File discovery utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from iconsmith.icons.imaging import fingerprint
from iconsmith.icons.service import CancelFlag, IconApplicationService
from iconsmith.state.models import normalize_extension

from .models import FileRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_BUNDLE_SUFFIXES = (".app", ".bundle", ".framework", ".pkg", ".plugin")


def extension_of(path: Path) -> str:
    """Return the lowercased suffix after the last dot of ``path``'s name."""
    name = path.name
    if "." not in name.lstrip("."):
        return ""
    return name.rsplit(".", 1)[1].lower()


class DirectoryScanner:
    """Discover files under a root and collect their icon metadata."""

    def __init__(
        self,
        icons: IconApplicationService,
        *,
        include_hidden: bool = False,
        bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES,
    ) -> None:
        self.icons = icons
        self.include_hidden = include_hidden
        self.bundle_suffixes = {suffix.lower() for suffix in bundle_suffixes}

    def scan(
        self,
        root: Path,
        extensions: Optional[Iterable[str]] = None,
        progress: Optional[Callable[[int], None]] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> Iterator[FileRecord]:
        """Yield a record for every regular file under ``root``.

        Args:
            root: Directory to walk.
            extensions: Optional allow-set of extensions (case and dot insensitive).
            progress: Called with the running count after each yielded record.
            cancel: Flag checked between files; scanning stops once it is set.

        Yields:
            FileRecord: Metadata for each visited file. Order is unspecified.
        """
        root = root.expanduser().resolve()
        if not root.exists():
            return
        allowed = {normalize_extension(ext) for ext in extensions} if extensions else None

        count = 0
        for path in self._iter_paths(root):
            if cancel is not None and cancel.is_set():
                LOGGER.info("Scan of %s cancelled after %d files", root, count)
                return
            ext = extension_of(path)
            if allowed is not None and ext not in allowed:
                continue
            record = self._describe(path, ext)
            if record is None:
                continue
            count += 1
            yield record
            if progress is not None:
                progress(count)

    def _describe(self, path: Path, ext: str) -> Optional[FileRecord]:
        try:
            icon = self.icons.current_icon(path)
            has_custom = self.icons.has_custom_icon(path)
            marked = self.icons.has_marker(path)
        except OSError as exc:
            LOGGER.debug("Skipping unreadable file %s: %s", path, exc)
            return None
        return FileRecord(
            path=path,
            filename=path.name,
            extension=ext,
            icon_fingerprint=fingerprint(icon) if icon else None,
            has_custom_icon=has_custom,
            has_marker=marked,
        )

    def _iter_paths(self, root: Path) -> Iterator[Path]:
        if root.is_file():
            yield root
            return

        for dirpath, dirnames, filenames in os.walk(root, followlinks=False, onerror=self._on_error):
            dirnames[:] = [name for name in dirnames if self._should_descend(name)]
            for name in filenames:
                if not self.include_hidden and name.startswith("."):
                    continue
                path = Path(dirpath) / name
                if path.is_file():
                    yield path

    def _should_descend(self, name: str) -> bool:
        if not self.include_hidden and name.startswith("."):
            return False
        return Path(name).suffix.lower() not in self.bundle_suffixes

    def _on_error(self, exc: OSError) -> None:
        LOGGER.debug("Skipping unreadable directory: %s", exc)


__all__ = ["DirectoryScanner", "DEFAULT_BUNDLE_SUFFIXES", "extension_of"]
