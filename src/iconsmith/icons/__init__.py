"""Icon application primitives and services."""

from .backend import IconBackend, ManagedIconBackend
from .errors import ApplyFailedError, FileNotFoundIconError, IconError, RemoveFailedError
from .markers import MarkerStore, SidecarMarkerStore, XattrMarkerStore, default_marker_store
from .service import BatchResult, IconApplicationService

__all__ = [
    "ApplyFailedError",
    "BatchResult",
    "FileNotFoundIconError",
    "IconApplicationService",
    "IconBackend",
    "IconError",
    "ManagedIconBackend",
    "MarkerStore",
    "RemoveFailedError",
    "SidecarMarkerStore",
    "XattrMarkerStore",
    "default_marker_store",
]
