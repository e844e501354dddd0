"""
Draw OCR geometry back onto page images.

Two passes are available: line-level and word-level polygons. Each enabled
pass produces its own raster, `{page}_lines.jpg` or `{page}_words.jpg`.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw

from .codec import JPEG_QUALITY, save_jpeg
from .models import Page, Point, Polygon, ReadResult


STROKE_WIDTH = 3
STROKE_COLOR = "cyan"
MIN_POLYGON_POINTS = 4
SUPERSAMPLE = 4


def line_polygons(read: Optional[ReadResult]) -> List[Polygon]:
    if read is None:
        return []
    return [line.polygon for line in read.lines()]


def word_polygons(read: Optional[ReadResult]) -> List[Polygon]:
    if read is None:
        return []
    return [word.polygon for word in read.words()]


def _stroke_patch(
    points: Sequence[Point],
    width: int,
    size: Tuple[int, int],
) -> Optional[Tuple[Tuple[int, int, int, int], Image.Image]]:
    """
    Antialiased coverage mask for one closed outline.

    The outline is drawn at SUPERSAMPLE times the resolution inside the
    polygon's padded bounding box, then box-filtered back down, so partially
    covered edge pixels get intermediate mask values. Returns the box (in page
    coordinates) and its mask, or None when the polygon lies off the page.
    """

    if len(points) < MIN_POLYGON_POINTS:
        raise ValueError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(points)}."
        )
    xs = [x for x, _ in points]
    ys = [y for _, y in points]
    pad = width + 1
    left = max(0, math.floor(min(xs)) - pad)
    top = max(0, math.floor(min(ys)) - pad)
    right = min(size[0], math.ceil(max(xs)) + pad + 1)
    bottom = min(size[1], math.ceil(max(ys)) + pad + 1)
    if right <= left or bottom <= top:
        return None

    patch_size = (right - left, bottom - top)
    fine = Image.new("L", (patch_size[0] * SUPERSAMPLE, patch_size[1] * SUPERSAMPLE), 0)
    # Pixel centers stay aligned between the page grid and the fine grid.
    outline = [
        ((x - left + 0.5) * SUPERSAMPLE - 0.5, (y - top + 0.5) * SUPERSAMPLE - 0.5)
        for x, y in points
    ]
    outline.append(outline[0])
    ImageDraw.Draw(fine).line(outline, fill=255, width=width * SUPERSAMPLE, joint="curve")
    return (left, top, right, bottom), fine.resize(patch_size, Image.Resampling.BOX)


def render(
    image: Image.Image,
    polygons: Iterable[Sequence[Point]],
    stroke_width: int = STROKE_WIDTH,
    stroke_color: str = STROKE_COLOR,
) -> Image.Image:
    """Return a new RGB raster with each polygon outlined; `image` is untouched."""

    base = image if image.mode == "RGB" else image.convert("RGB")
    mask = Image.new("L", base.size, 0)
    for points in polygons:
        stroke = _stroke_patch(points, stroke_width, base.size)
        if stroke is None:
            continue
        box, patch = stroke
        mask.paste(ImageChops.lighter(mask.crop(box), patch), box[:2])

    fill = Image.new("RGB", base.size, ImageColor.getcolor(stroke_color, "RGB"))
    return Image.composite(fill, base, mask)



def annotate_page(
    page: Page,
    read: Optional[ReadResult],
    out_dir: Path,
    draw_lines: bool = False,
    draw_words: bool = True,
    stroke_width: int = STROKE_WIDTH,
    stroke_color: str = STROKE_COLOR,
    quality: int = JPEG_QUALITY,
) -> List[Path]:
    """Render and save each enabled pass; returns the written paths."""

    passes = []
    if draw_lines:
        passes.append(("lines", line_polygons(read)))
    if draw_words:
        passes.append(("words", word_polygons(read)))

    written: List[Path] = []
    for suffix, polygons in passes:
        raster = render(page.image, polygons, stroke_width, stroke_color)
        written.append(save_jpeg(raster, out_dir / f"{page.name}_{suffix}.jpg", quality))
    return written
