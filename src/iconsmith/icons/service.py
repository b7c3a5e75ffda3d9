"""Apply and remove custom icons on single files and batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from .backend import IconBackend
from .errors import ApplyFailedError, FileNotFoundIconError, IconError, RemoveFailedError
from .markers import MarkerStore

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancelFlag(Protocol):
    """Shared flag checked between files; ``threading.Event`` satisfies it."""

    def is_set(self) -> bool: ...


@dataclass(slots=True)
class BatchResult:
    """Per-file outcome of a batch operation.

    Attributes:
        succeeded: Files whose icon was changed.
        failed: Files that could not be changed, with the error raised for each.
        cancelled: Whether the batch stopped early because it was cancelled.
    """

    succeeded: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, IconError]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return len(self.succeeded) + len(self.failed)


class IconApplicationService:
    """Set and clear custom icons, tagging the files it modifies."""

    def __init__(self, backend: IconBackend, markers: MarkerStore) -> None:
        self.backend = backend
        self.markers = markers

    def apply(self, image: bytes, path: Path) -> None:
        """Apply ``image`` as the custom icon of ``path``.

        Args:
            image: Raw bytes of the icon image.
            path: Target file.

        Raises:
            FileNotFoundIconError: If ``path`` does not exist.
            ApplyFailedError: If the icon primitive fails.
        """
        if not path.exists():
            raise FileNotFoundIconError(path)
        if not self.backend.set_icon(path, image):
            raise ApplyFailedError(path)
        self.markers.mark(path)
        LOGGER.debug("Applied icon to %s", path)

    def remove(self, path: Path) -> None:
        """Clear the custom icon of ``path`` and strip its marker.

        Raises:
            FileNotFoundIconError: If ``path`` does not exist.
            RemoveFailedError: If the icon primitive fails.
        """
        if not path.exists():
            raise FileNotFoundIconError(path)
        if not self.backend.set_icon(path, None):
            raise RemoveFailedError(path)
        self.markers.unmark(path)
        LOGGER.debug("Removed icon from %s", path)

    def batch_apply(
        self,
        image: bytes,
        paths: Iterable[Path],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
        before: Optional[Callable[[Path], object]] = None,
    ) -> BatchResult:
        """Apply ``image`` to every path in order, capturing failures per file.

        Args:
            image: Raw bytes of the icon image.
            paths: Target files.
            progress: Called with (completed, total) after every file.
            cancel: Flag checked before each file; once set no further files are touched.
            before: Called with each existing file just before it is changed.

        Returns:
            BatchResult: Files partitioned into succeeded and failed.
        """
        return self._run_batch(
            lambda path: self.apply(image, path), paths, progress, cancel, before
        )

    def batch_remove(
        self,
        paths: Iterable[Path],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
        before: Optional[Callable[[Path], object]] = None,
    ) -> BatchResult:
        """Remove custom icons from every path, capturing failures per file."""
        return self._run_batch(self.remove, paths, progress, cancel, before)

    def current_icon(self, path: Path) -> bytes:
        return self.backend.current_icon(path)

    def has_custom_icon(self, path: Path) -> bool:
        return self.backend.has_custom_icon(path)

    def has_marker(self, path: Path) -> bool:
        return self.markers.is_marked(path)

    def _run_batch(
        self,
        operation: Callable[[Path], None],
        paths: Iterable[Path],
        progress: Optional[ProgressCallback],
        cancel: Optional[CancelFlag],
        before: Optional[Callable[[Path], object]],
    ) -> BatchResult:
        targets = list(paths)
        total = len(targets)
        result = BatchResult()
        for index, path in enumerate(targets, start=1):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                LOGGER.info("Batch cancelled after %d of %d files", index - 1, total)
                break
            try:
                if before is not None and path.exists():
                    before(path)
                operation(path)
            except IconError as exc:
                result.failed.append((path, exc))
            else:
                result.succeeded.append(path)
            if progress is not None:
                progress(index, total)
        return result


__all__ = ["BatchResult", "CancelFlag", "IconApplicationService", "ProgressCallback"]
