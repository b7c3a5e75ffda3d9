"""Build and parse ``iconsmith://apply?files=...`` links."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List
from urllib.parse import quote, unquote, urlsplit

SCHEME = "iconsmith"
APPLY_HOST = "apply"


class DeepLinkError(ValueError):
    """Raised when a link is not an IconSmith link this version understands."""


def build_apply_uri(paths: Iterable[Path]) -> str:
    """Return a link asking IconSmith to apply an icon to ``paths``.

    Each path becomes a ``file://`` URL, percent-encoded so the comma
    separator stays unambiguous.
    """
    encoded = ",".join(quote(Path(path).expanduser().resolve().as_uri(), safe="") for path in paths)
    return f"{SCHEME}://{APPLY_HOST}?files={encoded}"


def parse_apply_uri(uri: str) -> List[Path]:
    """Return the local paths carried by an apply link.

    Raises:
        DeepLinkError: If the scheme or action is not recognised.
    """
    parts = urlsplit(uri)
    if parts.scheme != SCHEME:
        raise DeepLinkError(f"Unsupported link scheme: {parts.scheme or '(none)'}")
    if parts.netloc != APPLY_HOST:
        raise DeepLinkError(f"Unsupported link action: {parts.netloc or '(none)'}")

    _, separator, value = parts.query.partition("files=")
    if not separator or not value:
        return []
    return [_to_path(unquote(item)) for item in value.split(",") if item]


def _to_path(value: str) -> Path:
    if value.startswith("file:"):
        return Path(unquote(urlsplit(value).path))
    return Path(value)


__all__ = ["APPLY_HOST", "SCHEME", "DeepLinkError", "build_apply_uri", "parse_apply_uri"]
