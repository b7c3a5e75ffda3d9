"""Icon library records and storage."""

from .errors import DecodingFailedError, IconImportError, LibraryError
from .models import IconCategory, IconRecord, IconSource
from .store import IconStore

__all__ = [
    "DecodingFailedError",
    "IconCategory",
    "IconImportError",
    "IconRecord",
    "IconSource",
    "IconStore",
    "LibraryError",
]
