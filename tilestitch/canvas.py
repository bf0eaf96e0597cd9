"""An encoder that keeps the whole image in memory and saves it at the end."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Encoder, Tile, crop_tile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageWriter:
    """Saves an image; as JPEG with the given quality, or by file extension if None."""

    jpeg_quality: int | None = None

    def write(self, image: Image.Image, destination: str | Path) -> None:
        if self.jpeg_quality is None:
            image.save(destination)
            return
        quality = min(100, max(1, self.jpeg_quality))
        image.convert("RGB").save(destination, format="JPEG", quality=quality)


class Canvas(Encoder):
    """An in-memory RGBA image on which tiles are pasted."""

    def __init__(
        self,
        destination: str | Path,
        size: Vec2d,
        image_writer: ImageWriter | None = None,
    ) -> None:
        self.destination = Path(destination)
        self.image_writer = image_writer or ImageWriter()
        self._image = Image.new("RGBA", (size.x, size.y), (0, 0, 0, 0))

    def add_tile(self, tile: Tile) -> None:
        sub_tile = crop_tile(tile, self.size())
        x, y = tile.position.x, tile.position.y
        width, height = self._image.size
        if x + sub_tile.width > width or y + sub_tile.height > height:
            raise ValueError("tile too large for image")
        logger.debug("Copying tile data from %r", tile)
        if sub_tile.width and sub_tile.height:
            self._image.paste(sub_tile.convert("RGBA"), (x, y))

    def finalize(self) -> None:
        self.image_writer.write(self._image, self.destination)

    def size(self) -> Vec2d:
        width, height = self._image.size
        return Vec2d(width, height)