"""Transport encoding and data-URL helpers."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path

DATA_URL_PREFIX = "data:"
IMAGE_DATA_URL_PREFIX = "data:image/"

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def to_transport(data: bytes) -> str:
    """Encode raw image bytes as base64 text without a data-URL prefix."""
    return base64.b64encode(data).decode("ascii")


def strip_data_url_prefix(value: str) -> str:
    """Return the payload of a data URL, or the value unchanged."""
    if value.startswith(DATA_URL_PREFIX) and "," in value:
        return value.split(",", 1)[1]
    return value


def is_data_url(value: str) -> bool:
    """True when the value is an embedded image rather than fallback text."""
    return value.startswith(IMAGE_DATA_URL_PREFIX) and ";base64," in value


def to_data_url(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{to_transport(data)}"


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Split a base64 data URL into its media type and decoded bytes.

    Raises:
        ValueError: If the value is not a base64 image data URL
    """
    if not is_data_url(value):
        raise ValueError("Not an image data URL")

    header, payload = value.split(",", 1)
    content_type = header[len(DATA_URL_PREFIX) :].split(";", 1)[0]
    try:
        return content_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def extension_for(content_type: str) -> str:
    return EXTENSIONS.get(content_type.lower(), ".png")


def save_variations(variations, output_dir: Path) -> list[Path]:
    """Write variations to ``output_dir`` as ``haircut_<angle>.<ext>``.

    Text fallbacks are written as ``.txt`` files.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    for variation in variations:
        stem = f"haircut_{variation.angle.value}"
        if variation.is_image:
            content_type, data = decode_data_url(variation.image)
            path = output_dir / f"{stem}{extension_for(content_type)}"
            path.write_bytes(data)
        else:
            path = output_dir / f"{stem}.txt"
            path.write_text(variation.image, encoding="utf-8")
        saved.append(path)
    return saved
