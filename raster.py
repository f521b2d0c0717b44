"""
Raster image capability used by the compositor.

``RasterImage`` wraps a Pillow RGBA image and exposes only what the card
pipeline needs: pixel size, resize, composite at an offset, and encode.
"""

import io
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps


class RasterImage:
    """RGBA raster backed by a Pillow image."""

    def __init__(self, image: Image.Image):
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self._image = image

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def blank(cls, width: int, height: int) -> "RasterImage":
        """Fully transparent canvas."""
        return cls(Image.new("RGBA", (width, height), (0, 0, 0, 0)))

    @classmethod
    def open(cls, path: Union[str, Path]) -> "RasterImage":
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)
            return cls(img.convert("RGBA"))

    @classmethod
    def from_bytes(cls, data: bytes) -> "RasterImage":
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            return cls(img.convert("RGBA"))

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    @property
    def pil(self) -> Image.Image:
        """The underlying Pillow image (for drawing text)."""
        return self._image

    def resize(self, width: int, height: int, resample=Image.LANCZOS, box=None) -> "RasterImage":
        """Return a resized copy.

        ``box`` is an optional (left, top, right, bottom) source region in
        float pixels; only that region is scaled to ``width`` x ``height``.
        """
        size = (max(1, int(width)), max(1, int(height)))
        return RasterImage(self._image.resize(size, resample, box=box))

    def composite(self, other: "RasterImage", x: int, y: int) -> "RasterImage":
        """Alpha-composite ``other`` over this image with its top-left at (x, y).

        Offsets may be negative or run past the edges; whatever falls outside
        this image is clipped. Modifies this image in place and returns it.
        """
        x, y = int(x), int(y)
        if (x, y) == (0, 0) and other.size == self.size:
            self._image = Image.alpha_composite(self._image, other._image)
            return self
        if x >= self.width or y >= self.height or x + other.width <= 0 or y + other.height <= 0:
            return self
        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        layer.paste(other._image, (x, y))
        self._image = Image.alpha_composite(self._image, layer)
        return self

    def encode(self, fmt: str = "PNG") -> bytes:
        buffer = io.BytesIO()
        self._image.save(buffer, format=fmt)
        return buffer.getvalue()

    def save(self, path: Union[str, Path], fmt: str = "PNG"):
        self._image.save(path, fmt)

    def __repr__(self):
        return f"RasterImage({self.width}x{self.height})"
