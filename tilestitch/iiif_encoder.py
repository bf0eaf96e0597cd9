"""An encoder that writes the image as a static IIIF level 0 tile pyramid."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Encoder, Tile
from tilestitch.retiler import Retiler, TileSaver

logger = logging.getLogger(__name__)

_TILE_SIDE = 512


class IiifTileSaver(TileSaver):
    """Saves tiles as JPEG files under their IIIF image request path."""

    def __init__(self, root_path: str | Path, quality: int) -> None:
        self.root_path = Path(root_path)
        self.quality = quality

    def save_tile(self, size: Vec2d, tile: Tile) -> None:
        width, height = tile.image.size
        region = f"{tile.position.x},{tile.position.y},{size.x},{size.y}"
        directory = self.root_path / region / f"{width},{height}" / "0"
        image_path = directory / "default.jpg"
        logger.debug("Writing tile to %s", image_path)
        directory.mkdir(parents=True, exist_ok=True)
        quality = min(100, max(1, self.quality))
        tile.image.convert("RGB").save(image_path, format="JPEG", quality=quality)


class IiifEncoder(Encoder):
    """Writes a directory holding tiles at every scale and an info.json file."""

    def __init__(self, destination: str | Path, size: Vec2d, quality: int) -> None:
        self.root_path = Path(destination)
        if self.root_path.is_file():
            self.root_path.unlink()
        logger.debug("Creating IIIF directory at %s", self.root_path)
        self.root_path.mkdir()
        self._retiler = Retiler(
            size, Vec2d(_TILE_SIDE, _TILE_SIDE), IiifTileSaver(self.root_path, quality), 1
        )

    def add_tile(self, tile: Tile) -> None:
        self._retiler.add_tile(tile)

    def finalize(self) -> None:
        self._retiler.finalize()
        tile_size = self._retiler.tile_size
        size = self.size()
        info = {
            "@context": "http://iiif.io/api/image/3/context.json",
            "id": ".",
            "type": "ImageService3",
            "protocol": "http://iiif.io/api/image",
            "profile": "level0",
            "width": size.x,
            "height": size.y,
            "qualities": ["default"],
            "formats": ["jpg"],
            "tiles": [
                {
                    "width": tile_size.x,
                    "height": tile_size.y,
                    "scaleFactors": [2**n for n in range(self._retiler.level_count())],
                }
            ],
        }
        info_path = self.root_path / "info.json"
        logger.debug("Writing iiif metadata to %s", info_path)
        info_path.write_text(json.dumps(info, separators=(",", ":")), encoding="utf-8")

    def size(self) -> Vec2d:
        return self._retiler.size()

    def remove(self) -> None:
        """Delete the output directory."""
        shutil.rmtree(self.root_path, ignore_errors=True)