"""Tests for directory scanning."""

from __future__ import annotations

import io
import threading
from pathlib import Path
from typing import List

import pytest
from PIL import Image

from iconsmith.icons import IconApplicationService, ManagedIconBackend, SidecarMarkerStore
from iconsmith.icons.imaging import fingerprint, placeholder_icon
from iconsmith.scanning import DirectoryScanner, extension_of


def _service(tmp_path: Path) -> IconApplicationService:
    return IconApplicationService(
        ManagedIconBackend(tmp_path / "custom-icons"),
        SidecarMarkerStore(tmp_path / "markers.json"),
    )


def _tree(root: Path) -> None:
    (root / "docs").mkdir(parents=True)
    (root / "docs" / "a.TXT").write_text("a", encoding="utf-8")
    (root / "docs" / "b.txt").write_text("b", encoding="utf-8")
    (root / "image.png").write_bytes(b"png")
    (root / "README").write_text("readme", encoding="utf-8")
    (root / ".hidden.txt").write_text("h", encoding="utf-8")
    (root / ".cache").mkdir()
    (root / ".cache" / "inner.txt").write_text("c", encoding="utf-8")
    (root / "Tool.app" / "Contents").mkdir(parents=True)
    (root / "Tool.app" / "Contents" / "Info.plist").write_text("x", encoding="utf-8")


@pytest.mark.parametrize(
    ("name", "expected"),
    [("a.TXT", "txt"), ("archive.tar.gz", "gz"), ("README", ""), (".bashrc", "")],
)
def test_extension_of(name: str, expected: str) -> None:
    assert extension_of(Path(name)) == expected


def test_scan_skips_hidden_entries_and_bundles(tmp_path: Path) -> None:
    root = tmp_path / "root"
    _tree(root)
    scanner = DirectoryScanner(_service(tmp_path))

    records = list(scanner.scan(root))

    assert sorted(record.filename for record in records) == ["README", "a.TXT", "b.txt", "image.png"]
    by_name = {record.filename: record for record in records}
    assert by_name["a.TXT"].extension == "txt"
    assert by_name["README"].extension == ""
    assert by_name["b.txt"].icon_fingerprint == fingerprint(placeholder_icon("txt"))
    assert not by_name["b.txt"].has_custom_icon


def test_scan_includes_hidden_when_enabled(tmp_path: Path) -> None:
    root = tmp_path / "root"
    _tree(root)
    scanner = DirectoryScanner(_service(tmp_path), include_hidden=True)

    names = {record.filename for record in scanner.scan(root)}

    assert {".hidden.txt", "inner.txt"} <= names
    assert "Info.plist" not in names


def test_scan_filters_extensions(tmp_path: Path) -> None:
    root = tmp_path / "root"
    _tree(root)
    scanner = DirectoryScanner(_service(tmp_path))

    records = list(scanner.scan(root, extensions=[".TXT"]))

    assert sorted(record.filename for record in records) == ["a.TXT", "b.txt"]


def test_scan_reports_custom_icons_and_markers(tmp_path: Path) -> None:
    root = tmp_path / "root"
    _tree(root)
    service = _service(tmp_path)
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (1, 2, 3)).save(buffer, format="PNG")
    service.apply(buffer.getvalue(), root / "docs" / "b.txt")

    by_name = {record.filename: record for record in DirectoryScanner(service).scan(root)}

    assert by_name["b.txt"].has_custom_icon
    assert by_name["b.txt"].has_marker
    assert by_name["b.txt"].icon_fingerprint == fingerprint(buffer.getvalue())
    assert by_name["a.TXT"].icon_fingerprint != by_name["b.txt"].icon_fingerprint


def test_scan_progress_and_cancel(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    for index in range(6):
        (root / f"{index}.txt").write_text("x", encoding="utf-8")
    cancel = threading.Event()
    counts: List[int] = []

    def _progress(count: int) -> None:
        counts.append(count)
        if count == 3:
            cancel.set()

    records = list(DirectoryScanner(_service(tmp_path)).scan(root, progress=_progress, cancel=cancel))

    assert len(records) == 3
    assert counts == [1, 2, 3]


def test_scan_missing_root_yields_nothing(tmp_path: Path) -> None:
    assert list(DirectoryScanner(_service(tmp_path)).scan(tmp_path / "nope")) == []
