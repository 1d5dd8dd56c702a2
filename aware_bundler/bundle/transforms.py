"""Content transforms applied to public assets and loader scripts."""

from __future__ import annotations

import base64
import io
import mimetypes
from typing import Tuple

import rjsmin
from PIL import Image

_MIME_TYPES = {
    "eot": "application/vnd.ms-fontobject",
    "ico": "image/x-icon",
    "otf": "font/otf",
    "svg": "image/svg+xml",
    "ttf": "font/ttf",
    "webp": "image/webp",
    "woff": "font/woff",
    "woff2": "font/woff2",
}


def minify(source: str) -> str:
    return rjsmin.jsmin(source)


def image_dimensions(data: bytes) -> Tuple[int, int]:
    """Return ``(width, height)`` of an encoded image."""

    with Image.open(io.BytesIO(data)) as image:
        width, height = image.size
    return width, height


def mime_type(extension: str) -> str:
    extension = extension.lower()
    if extension in _MIME_TYPES:
        return _MIME_TYPES[extension]
    guessed, _ = mimetypes.guess_type(f"asset.{extension}", strict=False)
    return guessed or "application/octet-stream"


def to_data_uri(extension: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type(extension)};base64,{encoded}"
