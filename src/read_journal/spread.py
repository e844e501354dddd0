"""
Load journal spreads and split them into left/right pages.

Why this module exists:
- A spread photo shows two facing pages; each page is analyzed on its own.
- The spiral binder sits in the middle, so a fixed-width band there belongs
  to neither page.
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from PIL import Image

from .models import BBox, Page, Spread
from .orientation import Orientation, normalize, read_orientation
from .utils import EntryFailure, InvalidDimension


def load_spread(path: Path) -> Spread:
    """Decode an image file and capture its stored orientation."""

    try:
        with Image.open(path) as opened:
            orientation = read_orientation(opened)
            # Load pixel data now so the input file can close cleanly.
            opened.load()
            image = opened.copy()
    except (OSError, SyntaxError, ValueError) as exc:
        raise EntryFailure(f"Cannot open {path}: {exc}") from exc
    return Spread(image=image, orientation=int(orientation), source_path=path)


def normalize_spread(spread: Spread) -> Spread:
    """Replace a spread with its canonical (TOP_LEFT) form."""

    if spread.orientation == Orientation.TOP_LEFT:
        return spread
    return Spread(
        image=normalize(spread.image, spread.orientation),
        orientation=int(Orientation.TOP_LEFT),
        source_path=spread.source_path,
    )


def split_rects(width: int, height: int, binder_width: int) -> Tuple[BBox, BBox]:
    """
    Compute (left, right) page rectangles as (left, top, right, bottom).

    half = (width - binder_width) // 2; the left page is [0, half), the right
    page is [half + binder_width, width). Any leftover odd pixel stays on the
    right page.
    """

    if binder_width < 0:
        raise InvalidDimension(f"Binder width must be >= 0, got {binder_width}.")
    half = (width - binder_width) // 2
    if half <= 0 or half + binder_width >= width:
        raise InvalidDimension(
            f"Cannot split a {width}px wide spread with a {binder_width}px binder band."
        )
    if height <= 0:
        raise InvalidDimension(f"Spread height must be positive, got {height}.")
    return (0, 0, half, height), (half + binder_width, 0, width, height)


def split_spread(spread: Spread, binder_width: int) -> Tuple[Page, Page]:
    """Split a canonical spread into its `_L` and `_R` pages."""

    width, height = spread.image.size
    left_rect, right_rect = split_rects(width, height, binder_width)
    base_name = spread.base_name
    left = Page(name=f"{base_name}_L", rect=left_rect, image=spread.image.crop(left_rect))
    right = Page(name=f"{base_name}_R", rect=right_rect, image=spread.image.crop(right_rect))
    return left, right


def whole_page(spread: Spread) -> Page:
    """Single-page entries: the full spread is the page."""

    width, height = spread.image.size
    return Page(name=spread.base_name, rect=(0, 0, width, height), image=spread.image)
