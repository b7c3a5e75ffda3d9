"""Tests for the activity log and recent-icons channel."""

from __future__ import annotations

import io
import json
from pathlib import Path

from PIL import Image

from iconsmith.history import ActivityLog, RecentIconsPublisher
from iconsmith.history.activity import RECENT_ICONS_FILENAME
from iconsmith.library import IconRecord
from iconsmith.state import ActionType, ActivityEntry


def _icon(tmp_path: Path, name: str, size: int = 256) -> IconRecord:
    path = tmp_path / "images" / f"{name}.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", (size, size), (40, 80, 160, 255)).save(path, format="PNG")
    return IconRecord(name=name, path=str(path))


def test_activity_log_keeps_newest_fifty(tmp_path: Path) -> None:
    log = ActivityLog(tmp_path)
    entries = [
        ActivityEntry(action=ActionType.APPLIED, file_paths=[f"/files/{index}.txt"])
        for index in range(60)
    ]

    for entry in entries:
        log.append(entry)

    assert len(log) == 50
    assert log.entries[0].id == entries[-1].id
    assert log.entries[-1].id == entries[10].id

    reloaded = ActivityLog(tmp_path)
    reloaded.load()
    assert [entry.id for entry in reloaded.entries] == [entry.id for entry in log.entries]


def test_recent_returns_requested_prefix(tmp_path: Path) -> None:
    log = ActivityLog(tmp_path, max_entries=5)
    for index in range(3):
        log.append(ActivityEntry(action=ActionType.REMOVED, file_paths=[f"/f/{index}"]))

    assert [entry.file_paths for entry in log.recent(2)] == [["/f/2"], ["/f/1"]]
    assert log.recent(0) == []


def test_publish_writes_thumbnail_and_index(tmp_path: Path) -> None:
    shared = tmp_path / "shared"
    publisher = RecentIconsPublisher(shared)
    icon = _icon(tmp_path, "Swift")

    assert publisher.publish(icon)

    (recent,) = publisher.recent()
    assert recent.id == icon.id
    thumbnail = Path(recent.thumbnail_path)
    assert thumbnail == shared / "Icons" / f"{str(icon.id).upper()}.png"
    with Image.open(thumbnail) as img:
        assert max(img.size) <= 128
    raw = json.loads((shared / RECENT_ICONS_FILENAME).read_text(encoding="utf-8"))
    assert raw[0]["thumbnailPath"] == str(thumbnail)


def test_publish_deduplicates_and_caps(tmp_path: Path) -> None:
    publisher = RecentIconsPublisher(tmp_path / "shared")
    icons = [_icon(tmp_path, f"icon{index}", size=8) for index in range(12)]

    for icon in icons:
        publisher.publish(icon)
    publisher.publish(icons[5])

    recent = publisher.recent()
    assert len(recent) == 10
    assert recent[0].id == icons[5].id
    assert [item.id for item in recent].count(icons[5].id) == 1


def test_publish_missing_image_returns_false(tmp_path: Path) -> None:
    publisher = RecentIconsPublisher(tmp_path / "shared")
    icon = IconRecord(name="Ghost", path=str(tmp_path / "ghost.png"))

    assert publisher.publish(icon) is False
    assert publisher.recent() == []


def test_reload_preserves_every_entry_field(tmp_path: Path) -> None:
    log = ActivityLog(tmp_path)
    entry = ActivityEntry(
        action=ActionType.BATCH_APPLIED,
        file_paths=["/files/a.txt", "/files/b.txt"],
        previous_icon_data=b"\x00\x01snapshot\xff",
    )
    log.append(entry)

    reloaded = ActivityLog(tmp_path)
    reloaded.load()

    (loaded,) = reloaded.entries
    assert loaded.model_dump() == entry.model_dump()
