"""Folder scanning for icon metadata."""

from .discovery import DirectoryScanner, extension_of
from .models import FileRecord

__all__ = ["DirectoryScanner", "FileRecord", "extension_of"]
