"""
JPEG encoding for service payloads and annotated outputs.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image

from .utils import ensure_dir


JPEG_QUALITY = 50


def _jpeg_ready(image: Image.Image) -> Image.Image:
    # JPEG has no alpha or palette modes.
    if image.mode in {"RGB", "L", "CMYK"}:
        return image
    return image.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    """Encode a page image to JPEG bytes."""

    buffer = io.BytesIO()
    _jpeg_ready(image).save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def save_jpeg(image: Image.Image, path: Path, quality: int = JPEG_QUALITY) -> Path:
    """Write a JPEG file, creating parent folders as needed."""

    ensure_dir(path.parent)
    _jpeg_ready(image).save(path, format="JPEG", quality=quality)
    return path
