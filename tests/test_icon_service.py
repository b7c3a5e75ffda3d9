"""Tests for icon application, the managed backend, and file markers."""

from __future__ import annotations

import io
import threading
from pathlib import Path
from typing import List, Tuple

import pytest
from PIL import Image

from iconsmith.icons import (
    ApplyFailedError,
    FileNotFoundIconError,
    IconApplicationService,
    ManagedIconBackend,
    SidecarMarkerStore,
)
from iconsmith.icons.imaging import placeholder_icon


def _png(colour: tuple[int, int, int] = (10, 120, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), colour).save(buffer, format="PNG")
    return buffer.getvalue()


def _service(tmp_path: Path) -> IconApplicationService:
    backend = ManagedIconBackend(tmp_path / "custom-icons")
    return IconApplicationService(backend, SidecarMarkerStore(tmp_path / "markers.json"))


def _files(tmp_path: Path, count: int, suffix: str = ".txt") -> List[Path]:
    folder = tmp_path / "files"
    folder.mkdir(exist_ok=True)
    paths = []
    for index in range(count):
        path = folder / f"file{index}{suffix}"
        path.write_text(str(index), encoding="utf-8")
        paths.append(path)
    return paths


def test_apply_sets_icon_and_marker(tmp_path: Path) -> None:
    service = _service(tmp_path)
    (target,) = _files(tmp_path, 1)
    image = _png()

    service.apply(image, target)

    assert service.has_custom_icon(target)
    assert service.current_icon(target) == image
    assert service.has_marker(target)


def test_remove_restores_default_icon_and_clears_marker(tmp_path: Path) -> None:
    service = _service(tmp_path)
    (target,) = _files(tmp_path, 1)
    service.apply(_png(), target)

    service.remove(target)

    assert not service.has_custom_icon(target)
    assert not service.has_marker(target)
    assert service.current_icon(target) == placeholder_icon("txt")


def test_apply_missing_file_raises(tmp_path: Path) -> None:
    service = _service(tmp_path)

    with pytest.raises(FileNotFoundIconError) as excinfo:
        service.apply(_png(), tmp_path / "ghost.txt")
    assert str(excinfo.value) == "File not found: ghost.txt"


def test_apply_non_image_raises_apply_failed(tmp_path: Path) -> None:
    service = _service(tmp_path)
    (target,) = _files(tmp_path, 1)

    with pytest.raises(ApplyFailedError):
        service.apply(b"garbage", target)
    assert not service.has_marker(target)


def test_batch_apply_partitions_failures(tmp_path: Path) -> None:
    service = _service(tmp_path)
    existing = _files(tmp_path, 4)
    missing = [tmp_path / "gone1.txt", tmp_path / "gone2.txt"]
    progress: List[Tuple[int, int]] = []

    result = service.batch_apply(
        _png(),
        [existing[0], missing[0], *existing[1:], missing[1]],
        progress=lambda done, total: progress.append((done, total)),
    )

    assert result.succeeded == existing
    assert [path for path, _ in result.failed] == missing
    assert all(isinstance(error, FileNotFoundIconError) for _, error in result.failed)
    assert result.total_count == 6
    assert progress == [(index, 6) for index in range(1, 7)]
    assert not result.cancelled


def test_batch_apply_calls_before_hook_for_existing_files_only(tmp_path: Path) -> None:
    service = _service(tmp_path)
    existing = _files(tmp_path, 2)
    seen: List[Path] = []

    service.batch_apply(_png(), [*existing, tmp_path / "gone.txt"], before=seen.append)

    assert seen == existing


def test_batch_apply_stops_when_cancelled(tmp_path: Path) -> None:
    service = _service(tmp_path)
    paths = _files(tmp_path, 5)
    cancel = threading.Event()

    def _progress(done: int, total: int) -> None:
        if done == 2:
            cancel.set()

    result = service.batch_apply(_png(), paths, progress=_progress, cancel=cancel)

    assert result.cancelled
    assert result.succeeded == paths[:2]
    assert not result.failed
    assert not service.has_custom_icon(paths[2])


def test_batch_remove(tmp_path: Path) -> None:
    service = _service(tmp_path)
    paths = _files(tmp_path, 3)
    service.batch_apply(_png(), paths)

    result = service.batch_remove(paths)

    assert result.success_count == 3
    assert not any(service.has_custom_icon(path) for path in paths)


def test_sidecar_markers_persist(tmp_path: Path) -> None:
    (target,) = _files(tmp_path, 1)
    SidecarMarkerStore(tmp_path / "markers.json").mark(target)

    fresh = SidecarMarkerStore(tmp_path / "markers.json")
    assert fresh.is_marked(target)
    fresh.unmark(target)
    assert not SidecarMarkerStore(tmp_path / "markers.json").is_marked(target)


def test_backend_set_icon_on_missing_path_returns_false(tmp_path: Path) -> None:
    backend = ManagedIconBackend(tmp_path / "icons")

    assert backend.set_icon(tmp_path / "missing.txt", _png()) is False


def test_placeholder_differs_by_extension() -> None:
    assert placeholder_icon("txt") != placeholder_icon("pdf")
    assert placeholder_icon("txt") == placeholder_icon("txt")
