"""
Data shapes shared by the pipeline.

The analysis result types mirror what the image-understanding service
returns, stripped down to the fields the transcript and overlays need.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from PIL import Image


BBox = Tuple[int, int, int, int]
Point = Tuple[float, float]
Polygon = Tuple[Point, ...]


@dataclass(frozen=True)
class Caption:
    text: str
    confidence: float


@dataclass(frozen=True)
class OcrWord:
    text: str
    confidence: float
    polygon: Polygon


@dataclass(frozen=True)
class OcrLine:
    text: str
    confidence: float
    polygon: Polygon
    words: Tuple[OcrWord, ...] = ()


@dataclass(frozen=True)
class OcrBlock:
    lines: Tuple[OcrLine, ...] = ()


@dataclass(frozen=True)
class ReadResult:
    blocks: Tuple[OcrBlock, ...] = ()

    def lines(self) -> Iterator[OcrLine]:
        for block in self.blocks:
            yield from block.lines

    def words(self) -> Iterator[OcrWord]:
        for line in self.lines():
            yield from line.words


@dataclass(frozen=True)
class AnalysisResult:
    caption: Optional[Caption] = None
    dense_captions: Tuple[Caption, ...] = ()
    read: Optional[ReadResult] = None


@dataclass
class Spread:
    """A decoded photo plus the orientation code its pixels are stored in."""

    image: Image.Image
    orientation: int
    source_path: Path

    @property
    def base_name(self) -> str:
        return self.source_path.stem


@dataclass
class Page:
    """A named region of a canonical spread with its own pixels."""

    name: str
    rect: BBox
    image: Image.Image

    @property
    def width(self) -> int:
        return self.rect[2] - self.rect[0]

    @property
    def height(self) -> int:
        return self.rect[3] - self.rect[1]


@dataclass
class PageResult:
    """Outcome of one page (or of an entry that failed before splitting)."""

    page_name: str
    status: str
    caption_confidence: Optional[float] = None
    outputs: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
