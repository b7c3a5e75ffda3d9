"""Configuration models describing IconSmith settings."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class IconSmithBaseModel(BaseModel):
    """Shared configuration for IconSmith Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(IconSmithBaseModel):
    """Locations of persisted application data.

    Attributes:
        data_dir: Directory holding the library, presets, activity and undo ledger.
        shared_dir: Directory read by companion processes (recent icons channel).
    """

    data_dir: str = "~/.iconsmith/data"
    shared_dir: str = "~/.iconsmith/shared"


class ScanningOptions(IconSmithBaseModel):
    """Options governing folder scans.

    Attributes:
        include_hidden: Whether hidden files and directories are visited.
        bundle_suffixes: Directory suffixes treated as opaque bundles and never entered.
    """

    include_hidden: bool = False
    bundle_suffixes: List[str] = Field(
        default_factory=lambda: [
            ".app",
            ".bundle",
            ".framework",
            ".pkg",
            ".plugin",
            ".kext",
            ".photoslibrary",
            ".xcodeproj",
            ".xcworkspace",
        ]
    )


class HistorySettings(IconSmithBaseModel):
    """Limits applied to the bounded histories.

    Attributes:
        undo_max_entries: Maximum number of undo entries retained.
        activity_max_entries: Maximum number of activity entries retained.
        recent_icons_max: Maximum number of icons published to the recent channel.
    """

    undo_max_entries: int = 50
    activity_max_entries: int = 50
    recent_icons_max: int = 10


class LoggingSettings(IconSmithBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(IconSmithBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        history_limit: Default number of activity entries to display.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = 10


class IconSmithConfig(IconSmithBaseModel):
    """Top-level configuration struct for IconSmith.

    Attributes:
        storage: Data locations.
        scanning: Folder scan settings.
        history: Undo/activity/recent limits.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    scanning: ScanningOptions = Field(default_factory=ScanningOptions)
    history: HistorySettings = Field(default_factory=HistorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "IconSmithBaseModel",
    "StorageSettings",
    "ScanningOptions",
    "HistorySettings",
    "LoggingSettings",
    "CLIOptions",
    "IconSmithConfig",
]
