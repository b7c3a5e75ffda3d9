"""Errors raised while applying or removing icons."""

from __future__ import annotations

from pathlib import Path


class IconError(Exception):
    """Base exception for icon application failures."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class FileNotFoundIconError(IconError):
    """Raised when the target file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"File not found: {path.name}", path)


class ApplyFailedError(IconError):
    """Raised when the icon primitive refuses to set an icon."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Failed to apply icon to {path.name}", path)


class RemoveFailedError(IconError):
    """Raised when the icon primitive refuses to clear an icon."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Failed to remove icon from {path.name}", path)
