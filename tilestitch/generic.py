"""A dezoomer for tile URL templates such as ``http://host/img_{{X}}_{{Y}}.jpg``."""

from __future__ import annotations

import re

from tilestitch.dezoomer import (
    Dezoomer,
    DezoomerInput,
    TileFetchResult,
    TileProvider,
    TileReference,
    Vec2d,
    single_level,
)
from tilestitch.dichotomy import Dichotomy2d

TEMPLATE_RE = re.compile(
    r"\{\{(?P<dimension>x|y)(?::0(?P<zeroes>\d+))?\}\}", re.IGNORECASE
)


class GenericDezoomer(Dezoomer):
    """Discovers the dimensions of an image from a tile URL template."""

    name = "generic"

    def zoom_levels(self, data: DezoomerInput) -> list[TileProvider]:
        self.check(TEMPLATE_RE.search(data.uri) is not None)
        return single_level(GenericZoomLevel(data.uri))


class GenericZoomLevel(TileProvider):
    """A zoom level whose extent is found by probing tiles."""

    def __init__(self, url_template: str) -> None:
        self.url_template = url_template
        self._dichotomy = Dichotomy2d()
        self._last_tile = (0, 0)
        self._tile_size: Vec2d | None = None
        self._image_size: Vec2d | None = None
        self._done: set[tuple[int, int]] = set()

    def tile_url_at(self, x: int, y: int) -> str:
        def substitute(match: re.Match) -> str:
            num = x if match["dimension"].lower() == "x" else y
            padding = int(match["zeroes"]) if match["zeroes"] else 0
            return str(num).zfill(padding)

        return TEMPLATE_RE.sub(substitute, self.url_template)

    def tile_ref_at(self, x: int, y: int) -> TileReference:
        tile_size = self._tile_size or Vec2d(0, 0)
        return TileReference(url=self.tile_url_at(x, y), position=Vec2d(x, y) * tile_size)

    def next_tiles(self, previous: TileFetchResult | None) -> list[TileReference]:
        if previous is None:
            return [self.tile_ref_at(*self._last_tile)]
        if self._tile_size is None:
            self._tile_size = previous.tile_size
        guess = self._dichotomy.next(previous.is_success())
        if guess is not None:
            self._last_tile = guess
            self._done.add(guess)
            return [self.tile_ref_at(*guess)]
        if not self._done:
            return []
        last_x, last_y = self._last_tile
        if self._tile_size is not None:
            self._image_size = self._tile_size * Vec2d(last_x, last_y) + self._tile_size
        remaining = [
            self.tile_ref_at(x, y)
            for y in range(last_y + 1)
            for x in range(last_x + 1)
            if (x, y) not in self._done
        ]
        self._done.clear()
        return remaining

    def name(self) -> str:
        return f"Generic image with template {self.url_template}"

    def size_hint(self) -> Vec2d | None:
        return self._image_size

    def __repr__(self) -> str:
        return "Generic level"