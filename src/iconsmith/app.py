"""Application state and the end-to-end icon workflows."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from iconsmith.background import BackgroundTask, Reporter, TaskRunner
from iconsmith.config import IconSmithConfig
from iconsmith.consistency import Inconsistency, InconsistencyDetector
from iconsmith.deeplink import parse_apply_uri
from iconsmith.history import ActivityLog, RecentIconsPublisher, UndoLedger
from iconsmith.icons import (
    BatchResult,
    IconApplicationService,
    IconBackend,
    ManagedIconBackend,
    MarkerStore,
    default_marker_store,
)
from iconsmith.icons.service import CancelFlag, ProgressCallback
from iconsmith.library import IconCategory, IconRecord, IconStore, LibraryError
from iconsmith.library.store import ClipboardGrabber
from iconsmith.scanning import DirectoryScanner, FileRecord
from iconsmith.state import (
    FOLDERS_FILENAME,
    PRESETS_FILENAME,
    ActionType,
    ActivityEntry,
    JsonListStore,
    Preset,
    ScanFolder,
    UnknownRecordError,
)
from iconsmith.state.models import utcnow

LOGGER = logging.getLogger(__name__)

ICON_SUBDIRECTORIES = ("bundled", "imported", "generated", "clipboard")


class AppState:
    """Own every persisted list and service, exposing one update API per list.

    All mutations are expected to come from a single control thread; batch
    work may run on a :class:`~iconsmith.background.BackgroundTask` while the
    control thread waits for its result.
    """

    def __init__(
        self,
        config: IconSmithConfig,
        *,
        backend: Optional[IconBackend] = None,
        markers: Optional[MarkerStore] = None,
        clipboard: Optional[ClipboardGrabber] = None,
    ) -> None:
        """Wire the services for ``config``.

        Args:
            config: Loaded IconSmith configuration.
            backend: Icon primitives; defaults to a managed backend in the data directory.
            markers: Marker store; defaults to xattrs or a sidecar index.
            clipboard: Clipboard grabber passed to the icon store.
        """
        self.config = config
        self.data_dir = Path(config.storage.data_dir).expanduser()
        self.shared_dir = Path(config.storage.shared_dir).expanduser()

        self.backend = backend or ManagedIconBackend(self.data_dir / "custom-icons")
        self.markers = markers or default_marker_store(self.data_dir)
        self.icons = IconApplicationService(self.backend, self.markers)
        self.library = IconStore(self.data_dir, clipboard=clipboard)
        self.undo = UndoLedger(
            self.data_dir / "undo",
            self.backend,
            max_entries=config.history.undo_max_entries,
            markers=self.markers,
        )
        self.activity = ActivityLog(self.data_dir, max_entries=config.history.activity_max_entries)
        self.recent_icons = RecentIconsPublisher(
            self.shared_dir, max_entries=config.history.recent_icons_max
        )
        self.scanner = DirectoryScanner(
            self.icons,
            include_hidden=config.scanning.include_hidden,
            bundle_suffixes=config.scanning.bundle_suffixes,
        )
        self.detector = InconsistencyDetector(self.backend.current_icon)
        self.tasks = TaskRunner()
        self.pending_files: List[Path] = []

        self._folder_store = JsonListStore(self.data_dir / FOLDERS_FILENAME, ScanFolder)
        self._preset_store = JsonListStore(self.data_dir / PRESETS_FILENAME, Preset)
        self._folders: List[ScanFolder] = []
        self._presets: List[Preset] = []

    @classmethod
    def open(cls, config: IconSmithConfig, **kwargs) -> "AppState":
        """Create the data directories and load all persisted state."""
        state = cls(config, **kwargs)
        state.ensure_directories()
        state.load()
        return state

    def ensure_directories(self) -> None:
        directories = [self.data_dir, self.undo.directory]
        directories.extend(self.library.icons_dir / name for name in ICON_SUBDIRECTORIES)
        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                LOGGER.warning("Could not create %s: %s", directory, exc)

    def load(self) -> None:
        self._folders = self._folder_store.load()
        self._presets = self._preset_store.load()
        self.activity.load()
        self.library.load()
        self.undo.load()

    def save(self) -> None:
        self._folder_store.save(self._folders)
        self._preset_store.save(self._presets)
        self.library.save()

    # Folders ----------------------------------------------------------

    @property
    def folders(self) -> List[ScanFolder]:
        return list(self._folders)

    def add_folder(self, path: Path) -> Optional[ScanFolder]:
        """Register ``path`` for scanning; non-directories are ignored."""
        resolved = path.expanduser().resolve()
        if not resolved.is_dir():
            return None
        folder = ScanFolder(path=str(resolved))
        self._folders.append(folder)
        self._folder_store.save(self._folders)
        return folder

    def remove_folder(self, folder_id: UUID) -> None:
        self._folders = [folder for folder in self._folders if folder.id != folder_id]
        self._folder_store.save(self._folders)

    def mark_scanned(self, folder_id: UUID, file_count: int) -> None:
        for folder in self._folders:
            if folder.id == folder_id:
                folder.last_scanned = utcnow()
                folder.file_count = file_count
                self._folder_store.save(self._folders)
                return

    # Presets ----------------------------------------------------------

    @property
    def presets(self) -> List[Preset]:
        return list(self._presets)

    def preset(self, preset_id: UUID) -> Optional[Preset]:
        return next((preset for preset in self._presets if preset.id == preset_id), None)

    def add_preset(self, name: str, mappings: Optional[Dict[str, UUID]] = None) -> Preset:
        preset = Preset(name=name)
        for extension, icon_id in (mappings or {}).items():
            preset.set_mapping(extension, icon_id)
        self._presets.append(preset)
        self._preset_store.save(self._presets)
        return preset

    def update_preset(self, preset_id: UUID, mutator: Callable[[Preset], None]) -> None:
        """Apply ``mutator`` to a preset in place; unknown ids are ignored."""
        preset = self.preset(preset_id)
        if preset is None:
            return
        mutator(preset)
        self._preset_store.save(self._presets)

    def duplicate_preset(self, preset_id: UUID) -> Preset:
        preset = self.preset(preset_id)
        if preset is None:
            raise UnknownRecordError(f"No preset with id {preset_id}")
        copy = preset.duplicate()
        self._presets.append(copy)
        self._preset_store.save(self._presets)
        return copy

    def delete_preset(self, preset_id: UUID) -> None:
        self._presets = [preset for preset in self._presets if preset.id != preset_id]
        self._preset_store.save(self._presets)

    # Activity ---------------------------------------------------------

    def log_activity(self, entry: ActivityEntry) -> None:
        """Record ``entry`` and publish its icon to the recent-icons channel."""
        self.activity.append(entry)
        if entry.icon_used is None:
            return
        icon = self.library.lookup(entry.icon_used)
        if icon is not None:
            self.recent_icons.publish(icon)

    # Scanning ---------------------------------------------------------

    def scan(
        self,
        root: Path,
        extensions: Optional[Iterable[str]] = None,
        progress: Optional[Callable[[int], None]] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> List[FileRecord]:
        return list(self.scanner.scan(root, extensions, progress=progress, cancel=cancel))

    def start_scan(
        self, root: Path, extensions: Optional[Iterable[str]] = None
    ) -> BackgroundTask[List[FileRecord]]:
        """Scan ``root`` on a worker thread; progress values are running counts."""
        allowed = list(extensions) if extensions else None

        def _work(report: Reporter, cancel: threading.Event) -> List[FileRecord]:
            return self.scan(root, allowed, progress=report, cancel=cancel)

        return self.tasks.submit(f"scan:{root.name}", _work)

    def detect_inconsistencies(
        self, root: Path, extensions: Optional[Iterable[str]] = None
    ) -> List[Inconsistency]:
        return self.detector.detect(self.scan(root, extensions))

    # Applying and removing --------------------------------------------

    def apply_icon(
        self,
        icon_id: UUID,
        paths: Iterable[Path],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> BatchResult:
        """Apply a library icon to ``paths`` with undo, usage and activity bookkeeping.

        Raises:
            UnknownRecordError: If ``icon_id`` is not in the library.
            LibraryError: If the icon's image cannot be read.
        """
        icon = self._require_icon(icon_id)
        result = self.apply_image(self._read_icon(icon), paths, progress, cancel)
        self.complete_apply(icon, result)
        return result

    def start_apply(self, icon_id: UUID, paths: Iterable[Path]) -> BackgroundTask[BatchResult]:
        """Run the batch part of :meth:`apply_icon` on a worker thread.

        Call :meth:`complete_apply` with the task's result once it finishes.
        """
        image = self._read_icon(self._require_icon(icon_id))
        targets = list(paths)

        def _work(report: Reporter, cancel: threading.Event) -> BatchResult:
            return self.apply_image(image, targets, progress=report, cancel=cancel)

        return self.tasks.submit("apply", _work)

    def apply_image(
        self,
        image: bytes,
        paths: Iterable[Path],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> BatchResult:
        """Apply raw image bytes, snapshotting each file in the undo ledger first."""
        return self.icons.batch_apply(
            image, paths, progress=progress, cancel=cancel, before=self.undo.record_before_change
        )

    def complete_apply(self, icon: IconRecord, result: BatchResult) -> None:
        """Count one use of ``icon`` and log the files it was applied to."""
        if not result.succeeded:
            return
        self.library.increment_usage(icon.id)
        self.log_activity(
            ActivityEntry(
                action=ActionType.BATCH_APPLIED if result.success_count > 1 else ActionType.APPLIED,
                file_paths=[str(path) for path in result.succeeded],
                icon_used=icon.id,
            )
        )

    def remove_icons(
        self,
        paths: Iterable[Path],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> BatchResult:
        result = self.icons.batch_remove(
            paths, progress=progress, cancel=cancel, before=self.undo.record_before_change
        )
        if result.succeeded:
            self.log_activity(
                ActivityEntry(
                    action=ActionType.REMOVED,
                    file_paths=[str(path) for path in result.succeeded],
                )
            )
        return result

    def undo_last(self) -> bool:
        return self.undo.undo()

    def clear_undo_history(self) -> None:
        self.undo.clear_history()

    def fix_inconsistency(
        self,
        inconsistency: Inconsistency,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> Optional[BatchResult]:
        """Apply the dominant icon to every outlier; None when it is unavailable."""
        if inconsistency.dominant_icon is None:
            LOGGER.warning(
                "No dominant icon available for .%s files", inconsistency.file_extension
            )
            return None
        result = self.apply_image(
            inconsistency.dominant_icon, inconsistency.outlier_paths, progress, cancel
        )
        if result.succeeded:
            self.log_activity(
                ActivityEntry(
                    action=ActionType.BATCH_APPLIED if result.success_count > 1 else ActionType.APPLIED,
                    file_paths=[str(path) for path in result.succeeded],
                )
            )
        return result

    def apply_preset(
        self,
        preset_id: UUID,
        root: Path,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> Dict[str, BatchResult]:
        """Apply each mapped icon of a preset to the matching files under ``root``.

        Raises:
            UnknownRecordError: If the preset does not exist.
        """
        preset = self.preset(preset_id)
        if preset is None:
            raise UnknownRecordError(f"No preset with id {preset_id}")

        if not preset.mappings:
            return {}

        grouped: Dict[str, List[Path]] = defaultdict(list)
        for record in self.scan(root, list(preset.mappings), cancel=cancel):
            grouped[record.extension].append(record.path)

        results: Dict[str, BatchResult] = {}
        for extension in sorted(grouped):
            if cancel is not None and cancel.is_set():
                break
            icon_id = preset.icon_for(extension)
            if icon_id is None:
                continue
            if self.library.lookup(icon_id) is None:
                LOGGER.warning("Preset %s maps .%s to a missing icon", preset.name, extension)
                continue
            results[extension] = self.apply_icon(icon_id, grouped[extension], progress, cancel)
        return results

    # Library ----------------------------------------------------------

    def add_generated_icon(
        self, image: bytes, name: str, category: IconCategory = IconCategory.CUSTOM
    ) -> IconRecord:
        """Store a generated image in the library and log the generation."""
        icon = self.library.add_generated(image, name, category)
        self.activity.append(ActivityEntry(action=ActionType.GENERATED, icon_used=icon.id))
        return icon

    # Deep links -------------------------------------------------------

    def handle_deep_link(self, uri: str) -> List[Path]:
        """Remember the files named by an apply link for the next apply."""
        self.pending_files = parse_apply_uri(uri)
        return list(self.pending_files)

    def _require_icon(self, icon_id: UUID) -> IconRecord:
        icon = self.library.lookup(icon_id)
        if icon is None:
            raise UnknownRecordError(f"No icon with id {icon_id}")
        return icon

    def _read_icon(self, icon: IconRecord) -> bytes:
        try:
            return icon.read_image()
        except OSError as exc:
            raise LibraryError(f"Could not read image for icon {icon.name!r}: {exc}") from exc


__all__ = ["AppState", "ICON_SUBDIRECTORIES"]
