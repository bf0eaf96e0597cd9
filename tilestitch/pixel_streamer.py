"""Writes RGB pixels in order from tiles received in any order."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import BinaryIO

from PIL import Image

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Tile, max_size_in_rect

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 3


@dataclass(frozen=True)
class _Strip:
    """One line of pixels of a tile."""

    tile: Tile
    rgb: Image.Image
    line: int

    def pixel_index(self, image_size: Vec2d) -> int:
        position = self.tile.position + Vec2d(0, self.line)
        return position.y * image_size.x + position.x

    def length(self, canvas_size: Vec2d) -> int:
        return max_size_in_rect(self.tile.position, self.tile.size(), canvas_size).x

    def pixels(self, canvas_size: Vec2d, start_at: int) -> bytes:
        width = self.length(canvas_size)
        return self.rgb.crop((start_at, self.line, width, self.line + 1)).tobytes()


class PixelStreamer:
    """Receives tiles in any order and writes RGB pixels from top left to bottom right."""

    def __init__(self, writer: BinaryIO, size: Vec2d) -> None:
        self.writer = writer
        self.size = size
        self._strips: dict[int, _Strip] = {}
        self._keys: list[int] = []
        self._current = 0

    def add_tile(self, tile: Tile) -> None:
        height = max_size_in_rect(tile.position, tile.size(), self.size).y
        rgb = tile.image.convert("RGB")
        for line in range(height):
            strip = _Strip(tile, rgb, line)
            key = strip.pixel_index(self.size)
            if key not in self._strips:
                bisect.insort(self._keys, key)
            self._strips[key] = strip
        self._advance(finalize=False)

    def _advance(self, finalize: bool) -> None:
        while self._keys:
            start = self._keys[0]
            if start <= self._current:
                self._keys.pop(0)
                strip = self._strips.pop(start)
                length = strip.length(self.size)
                skip = self._current - start
                # Strips that were already written entirely are ignored.
                if skip < length:
                    self.writer.write(strip.pixels(self.size, skip))
                    logger.debug(
                        "Wrote a strip at position %d of size %d, skipping %d pixels",
                        self._current, length, skip,
                    )
                    self._current += length - skip
            elif finalize:
                # Data for a part of the image is missing.
                self.fill_blank(start)
            else:
                break

    def finalize(self) -> None:
        """Write all pending pixels, blank ones where data is missing, and flush."""
        self._advance(finalize=True)
        self.fill_blank(self.size.x * self.size.y)
        self.writer.flush()

    def fill_blank(self, until: int) -> None:
        """Write black pixels up to the given pixel index."""
        if until > self._current:
            remaining = until - self._current
            logger.debug("Filling incomplete image with %d pixels", remaining)
            self.writer.write(bytes(remaining * BYTES_PER_PIXEL))
            self._current = until