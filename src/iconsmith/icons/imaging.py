"""Pillow helpers for icon images."""

from __future__ import annotations

import hashlib
import io
from functools import lru_cache

from PIL import Image, ImageDraw, UnidentifiedImageError

THUMBNAIL_SIZE = 128
PLACEHOLDER_SIZE = 64


class ImageDecodeError(ValueError):
    """Raised when bytes cannot be decoded as an image."""


def is_image(data: bytes) -> bool:
    """Return whether ``data`` decodes as an image Pillow understands."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, ValueError):
        return False
    return True


def to_png(data: bytes) -> bytes:
    """Re-encode image bytes as PNG.

    Raises:
        ImageDecodeError: If ``data`` is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return encode_png(img)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"Unreadable image data: {exc}") from exc


def encode_png(image: Image.Image) -> bytes:
    """Return ``image`` encoded as PNG bytes."""
    if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
        image = image.convert("RGBA")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def thumbnail_png(data: bytes, size: int = THUMBNAIL_SIZE) -> bytes:
    """Return a PNG thumbnail no larger than ``size`` pixels on either side."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            copy = img.copy()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"Unreadable image data: {exc}") from exc
    copy.thumbnail((size, size))
    return encode_png(copy)


@lru_cache(maxsize=128)
def placeholder_icon(extension: str) -> bytes:
    """Return the generic document icon shown for files of ``extension``.

    The colour is derived from the extension so every file type has a stable,
    distinct default icon.
    """
    digest = hashlib.sha256(extension.encode("utf-8")).digest()
    colour = (digest[0], digest[1], digest[2], 255)
    image = Image.new("RGBA", (PLACEHOLDER_SIZE, PLACEHOLDER_SIZE), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.rectangle((10, 4, 54, 60), fill=(245, 245, 245, 255), outline=(120, 120, 120, 255))
    draw.rectangle((14, 40, 50, 54), fill=colour)
    return encode_png(image)


def fingerprint(data: bytes) -> str:
    """Return the SHA-256 hex digest identifying icon content."""
    return hashlib.sha256(data).hexdigest()


__all__ = [
    "ImageDecodeError",
    "encode_png",
    "fingerprint",
    "is_image",
    "placeholder_icon",
    "thumbnail_png",
    "to_png",
]
