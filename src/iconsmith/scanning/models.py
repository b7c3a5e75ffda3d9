"""Scan result models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class FileRecord(BaseModel):
    """Icon metadata for a file found during a scan.

    Attributes:
        path: Absolute path to the file.
        filename: Final path component.
        extension: Lowercased suffix after the last dot, empty when absent.
        icon_fingerprint: SHA-256 digest of the current icon bytes, if readable.
        has_custom_icon: Whether the file carries a custom icon.
        has_marker: Whether IconSmith last set the file's icon.
    """

    path: Path
    filename: str
    extension: str
    icon_fingerprint: Optional[str] = None
    has_custom_icon: bool = False
    has_marker: bool = False
