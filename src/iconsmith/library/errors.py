"""Icon library errors."""


class LibraryError(Exception):
    """Base exception for icon library operations."""


class IconImportError(LibraryError, OSError):
    """Raised when an icon image cannot be copied into the library."""


class DecodingFailedError(LibraryError):
    """Raised when image data cannot be decoded or re-encoded."""
