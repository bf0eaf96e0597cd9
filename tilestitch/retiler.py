"""Cuts a stream of source tiles into fixed-size target tiles at every zoom level."""

from __future__ import annotations

import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from PIL import Image

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Tile, max_size_in_rect

logger = logging.getLogger(__name__)


def _div(v: Vec2d, k: int) -> Vec2d:
    return Vec2d(v.x // k, v.y // k)


def _ceil_div(v: Vec2d, k: int) -> Vec2d:
    return Vec2d(-(-v.x // k), -(-v.y // k))


def _sat_sub(a: Vec2d, b: Vec2d) -> Vec2d:
    return Vec2d(max(0, a.x - b.x), max(0, a.y - b.y))


def _vmin(a: Vec2d, b: Vec2d) -> Vec2d:
    return Vec2d(min(a.x, b.x), min(a.y, b.y))


def _vmax(a: Vec2d, b: Vec2d) -> Vec2d:
    return Vec2d(max(a.x, b.x), max(a.y, b.y))


class TileSaver(ABC):
    """Receives the finished target tiles."""

    @abstractmethod
    def save_tile(self, size: Vec2d, tile: Tile) -> None:
        """Save a target tile covering ``size`` pixels of the original image."""


def _crop_image_for_tile(
    source: Tile, scaled_tile_pos: Vec2d, scaled_tile_size: Vec2d
) -> Image.Image:
    top_left = _vmax(scaled_tile_pos, source.position)
    bottom_right = _vmin(source.bottom_right(), scaled_tile_pos + scaled_tile_size)
    crop_pos = _sat_sub(top_left, source.position)
    crop_size = _sat_sub(bottom_right, top_left)
    return source.image.crop(
        (crop_pos.x, crop_pos.y, crop_pos.x + crop_size.x, crop_pos.y + crop_size.y)
    )


class _TmpTile:
    """A target tile that is only partly covered; its pixels are kept on disk."""

    def __init__(self, size: Vec2d, path: Path) -> None:
        self._width = size.x
        self._done = bytearray(size.x * size.y)
        self.path = path

    def missing_pixels(self) -> int:
        return self._done.count(0)

    def _set_done(self, size: Vec2d, top_left: Vec2d, bottom_right: Vec2d) -> None:
        right = min(bottom_right.x, size.x)
        if right <= top_left.x:
            return
        for y in range(top_left.y, min(bottom_right.y, size.y)):
            start = y * self._width + top_left.x
            end = y * self._width + right
            self._done[start:end] = b"\x01" * (end - start)

    def add_tile(
        self,
        self_position: Vec2d,
        self_size: Vec2d,
        level_size: Vec2d,
        scale_factor: int,
        tile: Tile,
    ) -> Image.Image | None:
        """Paste the tile's pixels; return the image once it is fully covered."""
        scaled_self_position = _div(self_position, scale_factor)
        top_left = _sat_sub(tile.position, scaled_self_position)
        scaled_level_size = _ceil_div(level_size, scale_factor)
        self_bottom_right = _vmin(
            _ceil_div(self_position + self_size, scale_factor), scaled_level_size
        )
        bottom_right = _sat_sub(
            _vmin(tile.bottom_right(), self_bottom_right), scaled_self_position
        )
        scaled_size = _ceil_div(self_size, scale_factor)

        logger.debug(
            "Opening partial tile of size %s at %s to paste pixels from %s to %s",
            scaled_size, self.path, top_left, bottom_right,
        )
        try:
            with Image.open(self.path) as stored:
                tile_img = stored.convert("RGB")
        except (OSError, ValueError):
            tile_img = Image.new("RGB", (scaled_size.x, scaled_size.y))
        sub = _crop_image_for_tile(tile, scaled_self_position, scaled_size)
        if top_left.x + sub.width > tile_img.width or top_left.y + sub.height > tile_img.height:
            raise ValueError("tile too large for image")
        if sub.width and sub.height:
            tile_img.paste(sub.convert("RGB"), (top_left.x, top_left.y))

        self._set_done(scaled_size, top_left, bottom_right)
        if self.missing_pixels() == 0:
            self.path.unlink(missing_ok=True)
            return tile_img
        tile_img.save(self.path, format="BMP")
        return None


class Retiler:
    """One zoom level of a tile pyramid, with a child for the next, smaller level.

    Source tiles of any size are pasted into target tiles of a fixed size.
    A target tile is handed to the tile saver as soon as it is fully covered.
    Every level passes each source tile on to its child.
    """

    def __init__(
        self,
        size: Vec2d,
        tile_size: Vec2d,
        tile_saver: TileSaver,
        scale_factor: int = 1,
        work_dir: str | Path | None = None,
    ) -> None:
        self._owns_work_dir = work_dir is None
        self._work_dir = Path(tempfile.mkdtemp(prefix="tilestitch_")) if work_dir is None else Path(work_dir)
        self.original_size = size
        self.scale_factor = scale_factor
        self.tile_size = Vec2d(tile_size.x * scale_factor, tile_size.y * scale_factor)
        self._tile_saver = tile_saver
        self._tiles: dict[tuple[int, int], _TmpTile | None] = {}
        scaled = _div(size, scale_factor)
        if scaled.x <= tile_size.x and scaled.y <= tile_size.y:
            self._next_level: Retiler | None = None
        else:
            self._next_level = Retiler(
                size, tile_size, tile_saver, scale_factor * 2, self._work_dir
            )

    def size(self) -> Vec2d:
        return _div(self.original_size, self.scale_factor)

    def _tile_positions(self, position: Vec2d, size: Vec2d) -> Iterator[Vec2d]:
        ts = self.tile_size
        top_left = Vec2d((position.x // ts.x) * ts.x, (position.y // ts.y) * ts.y)
        end = position + size
        bottom_right = Vec2d(-(-end.x // ts.x) * ts.x, -(-end.y // ts.y) * ts.y)
        for y in range(top_left.y, bottom_right.y, ts.y):
            for x in range(top_left.x, bottom_right.x, ts.x):
                yield Vec2d(x, y)

    def _tmp_path(self, position: Vec2d) -> Path:
        return self._work_dir / (
            f"level_{self.scale_factor}_position_{position.x}x{position.y}.bmp"
        )

    def add_tile(self, tile: Tile) -> None:
        """Paste a source tile into every target tile it covers, on every level."""
        sf = self.scale_factor
        if sf == 1:
            scaled_tile = tile
        else:
            scaled_top_left = _div(tile.position, sf)
            scaled_size = _sat_sub(_ceil_div(tile.bottom_right(), sf), scaled_top_left)
            image = tile.image.resize(
                (max(1, scaled_size.x), max(1, scaled_size.y)), Image.BOX
            )
            scaled_tile = Tile(image=image, position=scaled_top_left)

        for cur_pos in self._tile_positions(tile.position, tile.size()):
            cur_size = max_size_in_rect(cur_pos, self.tile_size, self.original_size)
            if cur_size.x == 0 or cur_size.y == 0:
                continue
            key = (cur_pos.x, cur_pos.y)
            if key in self._tiles and self._tiles[key] is None:
                logger.debug(
                    "Received pixels for tile at %s on level %d, but this tile has "
                    "already been written. Ignoring them (source tiles overlap).",
                    cur_pos, sf,
                )
                continue
            tmp = self._tiles.get(key)
            if tmp is None:
                logger.debug(
                    "Creating a new partial tile at scale factor %d position %s size %s",
                    sf, cur_pos, cur_size,
                )
                tmp = _TmpTile(_ceil_div(cur_size, sf), self._tmp_path(cur_pos))
                self._tiles[key] = tmp
            finished = tmp.add_tile(cur_pos, cur_size, self.original_size, sf, scaled_tile)
            if finished is not None:
                self.tile_save(cur_pos, cur_size, finished)
                self._tiles[key] = None

        if self._next_level is not None:
            self._next_level.add_tile(tile)

    def finalize(self) -> None:
        """Save the partially covered target tiles of every level."""
        tiles, self._tiles = self._tiles, {}
        for (x, y), tmp in tiles.items():
            if tmp is None:
                continue
            position = Vec2d(x, y)
            cur_size = max_size_in_rect(position, self.tile_size, self.original_size)
            logger.warning(
                "The target tile of size %s at zoom level %d and position %s was not "
                "fully covered by source tiles. It misses %d pixels.",
                cur_size, self.scale_factor, position, tmp.missing_pixels(),
            )
            try:
                with Image.open(tmp.path) as stored:
                    image = stored.convert("RGB")
                self.tile_save(position, cur_size, image)
                tmp.path.unlink()
            except (OSError, ValueError) as err:
                logger.warning(
                    "Additionally, the following error occurred when trying to add "
                    "the partial tile to the final image: %s", err,
                )
        if self._next_level is not None:
            self._next_level.finalize()
        if self._owns_work_dir:
            shutil.rmtree(self._work_dir, ignore_errors=True)

    def tile_save(self, position: Vec2d, size: Vec2d, image: Image.Image) -> None:
        self._tile_saver.save_tile(size, Tile(image=image, position=position))

    def level_count(self) -> int:
        return 1 + (self._next_level.level_count() if self._next_level else 0)