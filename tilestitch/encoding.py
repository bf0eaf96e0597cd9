"""Tiles and the interface of the encoders that assemble them into an image."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from PIL import Image

from tilestitch.dezoomer import Vec2d


@dataclass
class Tile:
    """A downloaded tile image and its position in the final image."""

    image: Image.Image
    position: Vec2d

    def size(self) -> Vec2d:
        width, height = self.image.size
        return Vec2d(width, height)

    def bottom_right(self) -> Vec2d:
        return self.position + self.size()


class Encoder(ABC):
    """Receives tiles in any order and writes the final image."""

    @abstractmethod
    def add_tile(self, tile: Tile) -> None:
        """Add a tile to the image."""

    @abstractmethod
    def finalize(self) -> None:
        """Write the image; no tile may be added afterwards."""

    @abstractmethod
    def size(self) -> Vec2d:
        """Size of the image being encoded."""


def max_size_in_rect(position: Vec2d, tile_size: Vec2d, canvas_size: Vec2d) -> Vec2d:
    """The part of a tile placed at ``position`` that lies inside the canvas."""
    return Vec2d(
        max(0, min(tile_size.x, canvas_size.x - position.x)),
        max(0, min(tile_size.y, canvas_size.y - position.y)),
    )


def crop_tile(tile: Tile, canvas_size: Vec2d) -> Image.Image:
    """Crop a tile that is larger than the canvas allows."""
    visible = max_size_in_rect(tile.position, tile.size(), canvas_size)
    return tile.image.crop((0, 0, visible.x, visible.y))