"""
Normalize photographed spreads to a top-left, unrotated, unmirrored buffer.

Why this module exists:
- Phone cameras store pixels in sensor order and record how to display them
  in the EXIF Orientation tag (codes 1..8).
- Every later step (splitting, OCR geometry, overlays) assumes canonical
  orientation, so we fix it once right after decoding.

Each code maps to a compound transform written the way a drawing canvas would
be set up (translate, rotate by 90-degree steps, mirror). The transform is
kept as an explicit affine value so it can be checked and used to map points;
the pixels themselves are moved with Pillow's lossless transpositions.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, NamedTuple, Tuple

from PIL import Image


EXIF_ORIENTATION_TAG = 0x0112


class Orientation(IntEnum):
    """EXIF orientation codes, named by where the stored row 0 / column 0 sit."""

    TOP_LEFT = 1
    TOP_RIGHT = 2
    BOTTOM_RIGHT = 3
    BOTTOM_LEFT = 4
    LEFT_TOP = 5
    RIGHT_TOP = 6
    RIGHT_BOTTOM = 7
    LEFT_BOTTOM = 8

    @property
    def swaps_dimensions(self) -> bool:
        return self in _SWAPPING

    @classmethod
    def from_exif(cls, value: object) -> "Orientation":
        """Missing or out-of-range tags mean the pixels are already upright."""

        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.TOP_LEFT


_SWAPPING = frozenset(
    {
        Orientation.LEFT_TOP,
        Orientation.RIGHT_TOP,
        Orientation.RIGHT_BOTTOM,
        Orientation.LEFT_BOTTOM,
    }
)

# Exact cos/sin for quarter turns; clockwise in y-down image space.
_QUARTER_TURNS: Dict[int, Tuple[int, int]] = {
    0: (1, 0),
    90: (0, 1),
    180: (-1, 0),
    270: (0, -1),
}


class Affine(NamedTuple):
    """
    2-D affine map: x' = a*x + b*y + tx, y' = c*x + d*y + ty.

    Builder methods post-concatenate like a canvas: the step called last is
    applied to the point first.
    """

    a: float = 1
    b: float = 0
    c: float = 0
    d: float = 1
    tx: float = 0
    ty: float = 0

    def concat(self, other: "Affine") -> "Affine":
        return Affine(
            a=self.a * other.a + self.b * other.c,
            b=self.a * other.b + self.b * other.d,
            c=self.c * other.a + self.d * other.c,
            d=self.c * other.b + self.d * other.d,
            tx=self.a * other.tx + self.b * other.ty + self.tx,
            ty=self.c * other.tx + self.d * other.ty + self.ty,
        )

    def translate(self, dx: float, dy: float) -> "Affine":
        return self.concat(Affine(tx=dx, ty=dy))

    def rotate(self, degrees: int) -> "Affine":
        if degrees % 90 != 0:
            raise ValueError(f"Only quarter-turn rotations are supported, got {degrees}.")
        cos, sin = _QUARTER_TURNS[degrees % 360]
        return self.concat(Affine(a=cos, b=-sin, c=sin, d=cos))

    def scale(self, sx: float, sy: float) -> "Affine":
        return self.concat(Affine(a=sx, d=sy))

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        return (self.a * x + self.b * y + self.tx, self.c * x + self.d * y + self.ty)

    @property
    def linear(self) -> Tuple[int, int, int, int]:
        return (int(self.a), int(self.b), int(self.c), int(self.d))


IDENTITY = Affine()

# Each quarter-turn/mirror linear part corresponds to exactly one lossless
# Pillow transposition of the pixel grid.
_TRANSPOSE_BY_LINEAR: Dict[Tuple[int, int, int, int], Image.Transpose] = {
    (-1, 0, 0, 1): Image.Transpose.FLIP_LEFT_RIGHT,
    (1, 0, 0, -1): Image.Transpose.FLIP_TOP_BOTTOM,
    (-1, 0, 0, -1): Image.Transpose.ROTATE_180,
    (0, -1, 1, 0): Image.Transpose.ROTATE_270,
    (0, 1, -1, 0): Image.Transpose.ROTATE_90,
    (0, 1, 1, 0): Image.Transpose.TRANSPOSE,
    (0, -1, -1, 0): Image.Transpose.TRANSVERSE,
}


def orientation_transform(orientation: Orientation, width: int, height: int) -> Affine:
    """
    Build the source-to-destination transform for one orientation code.

    width/height are the stored (pre-swap) dimensions; rotation pivots are
    always expressed in them, never in the destination size.
    """

    w, h = width, height
    if orientation == Orientation.BOTTOM_RIGHT:
        return IDENTITY.translate(w, h).rotate(180)
    if orientation == Orientation.RIGHT_TOP:
        return IDENTITY.translate(h, 0).rotate(90)
    if orientation == Orientation.LEFT_BOTTOM:
        return IDENTITY.translate(0, w).rotate(270)
    if orientation == Orientation.TOP_RIGHT:
        return IDENTITY.scale(-1, 1).translate(-w, 0)
    if orientation == Orientation.BOTTOM_LEFT:
        return IDENTITY.scale(1, -1).translate(0, -h)
    if orientation == Orientation.LEFT_TOP:
        return IDENTITY.scale(-1, 1).rotate(90)
    if orientation == Orientation.RIGHT_BOTTOM:
        return IDENTITY.translate(h, w).scale(1, -1).rotate(90)
    return IDENTITY


def output_size(orientation: Orientation, width: int, height: int) -> Tuple[int, int]:
    """Destination canvas size: swapped for the four quarter-turn/transpose codes."""

    if orientation.swaps_dimensions:
        return height, width
    return width, height


def normalize(image: Image.Image, orientation: Orientation | int) -> Image.Image:
    """
    Return an image whose effective orientation is TOP_LEFT.

    Identity returns the input object unchanged (no copy). Every other code
    returns a new image; the input is never modified.
    """

    orientation = Orientation.from_exif(orientation)
    if orientation == Orientation.TOP_LEFT:
        return image

    transform = orientation_transform(orientation, *image.size)
    return image.transpose(_TRANSPOSE_BY_LINEAR[transform.linear])


def read_orientation(image: Image.Image) -> Orientation:
    """Read the EXIF orientation tag from a decoded image."""

    return Orientation.from_exif(image.getexif().get(EXIF_ORIENTATION_TAG))
