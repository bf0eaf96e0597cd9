"""Core abstractions: vectors, tile references, tile providers and dezoomers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from tilestitch.errors import DownloadError, MalformedTileStr, NeedsData, WrongDezoomer

_U32_MAX = 2**32 - 1
_UINT_RE = re.compile(r"\+?\d+")


def _pair(other: Union["Vec2d", int]) -> tuple[int, int]:
    if isinstance(other, Vec2d):
        return other.x, other.y
    return other, other


@dataclass(frozen=True, order=False)
class Vec2d:
    """A pair of non-negative integers: a position or a size in pixels."""

    x: int = 0
    y: int = 0

    @classmethod
    def square(cls, side: int) -> "Vec2d":
        return cls(side, side)

    def area(self) -> int:
        return self.x * self.y

    def ceil_div(self, other: Union["Vec2d", int]) -> "Vec2d":
        ox, oy = _pair(other)
        return Vec2d(-(-self.x // ox), -(-self.y // oy))

    def fits_inside(self, other: "Vec2d") -> bool:
        return self.x <= other.x and self.y <= other.y

    def max(self, other: "Vec2d") -> "Vec2d":
        return Vec2d(max(self.x, other.x), max(self.y, other.y))

    def min(self, other: "Vec2d") -> "Vec2d":
        return Vec2d(min(self.x, other.x), min(self.y, other.y))

    def __add__(self, other: Union["Vec2d", int]) -> "Vec2d":
        ox, oy = _pair(other)
        return Vec2d(self.x + ox, self.y + oy)

    def __sub__(self, other: Union["Vec2d", int]) -> "Vec2d":
        ox, oy = _pair(other)
        return Vec2d(self.x - ox, self.y - oy)

    def __mul__(self, other: Union["Vec2d", int]) -> "Vec2d":
        ox, oy = _pair(other)
        return Vec2d(self.x * ox, self.y * oy)

    __rmul__ = __mul__

    def __floordiv__(self, other: Union["Vec2d", int]) -> "Vec2d":
        ox, oy = _pair(other)
        return Vec2d(self.x // ox, self.y // oy)

    def __str__(self) -> str:
        return f"{self.x}x{self.y}"


@dataclass
class DezoomerInput:
    """A URI, together with its downloaded contents when they are known.

    ``contents`` is None while not downloaded, bytes on success, or the
    exception raised by the download.
    """

    uri: str
    contents: Union[bytes, BaseException, None] = None

    def with_contents(self) -> bytes:
        """Return the downloaded bytes, or raise what a dezoomer should report."""
        if self.contents is None:
            raise NeedsData(self.uri)
        if isinstance(self.contents, BaseException):
            raise DownloadError(str(self.contents))
        return self.contents


@dataclass(frozen=True)
class TileFetchResult:
    """Summary of the download of a batch of tiles."""

    count: int
    successes: int
    tile_size: Vec2d | None = None

    def is_success(self) -> bool:
        size = self.tile_size
        return size is not None and size.x > 0 and size.y > 0 and self.successes > 0


@dataclass(frozen=True)
class TileReference:
    """The URL of a tile and its position in the final image."""

    url: str
    position: Vec2d

    @classmethod
    def parse(cls, tile_str: str) -> "TileReference":
        """Parse a string of the form 'x y url'."""
        parts = tile_str.split(" ")
        if len(parts) < 3:
            raise MalformedTileStr(tile_str)
        coords = []
        for part in parts[:2]:
            if not _UINT_RE.fullmatch(part) or int(part) > _U32_MAX:
                raise MalformedTileStr(tile_str)
            coords.append(int(part))
        return cls(url=parts[2], position=Vec2d(*coords))

    def __str__(self) -> str:
        return self.url


class TileProvider(ABC):
    """A single tiled image at a given resolution."""

    @abstractmethod
    def next_tiles(self, previous: TileFetchResult | None) -> list[TileReference]:
        """Return the next batch of tiles; an empty list means there are no more."""

    def post_process(self, tile: TileReference, data: bytes) -> bytes:
        """Decode downloaded tile bytes.

        The default applies no decoding and only returns the data as an
        immutable bytes object, whatever buffer type it arrived in.
        """
        if isinstance(data, bytes):
            return data
        return bytes(data)

    def name(self) -> str:
        return repr(self)

    def title(self) -> str | None:
        return None

    def size_hint(self) -> Vec2d | None:
        return None

    def http_headers(self) -> dict[str, str]:
        return {}


class TilesRect(TileProvider):
    """A tile provider whose size and tile size are known in advance."""

    @abstractmethod
    def size(self) -> Vec2d:
        """Size of the image in pixels."""

    @abstractmethod
    def tile_size(self) -> Vec2d:
        """Size of a single tile in pixels."""

    @abstractmethod
    def tile_url(self, pos: Vec2d) -> str:
        """URL of the tile at the given tile coordinates."""

    def tile_ref(self, pos: Vec2d) -> TileReference:
        return TileReference(url=self.tile_url(pos), position=self.tile_size() * pos)

    def tile_count(self) -> int:
        return self.size().ceil_div(self.tile_size()).area()

    def next_tiles(self, previous: TileFetchResult | None) -> list[TileReference]:
        # All tiles are known at once, so only the first call returns any.
        if previous is not None:
            return []
        counts = self.size().ceil_div(self.tile_size())
        return [
            self.tile_ref(Vec2d(x, y))
            for y in range(counts.y)
            for x in range(counts.x)
        ]

    def name(self) -> str:
        size = self.size()
        return (
            f"{self!r} ({size.x:>5} x {size.y:>5} pixels, "
            f"{self.tile_count():>5} tiles)"
        )

    def size_hint(self) -> Vec2d | None:
        return self.size()

    def http_headers(self) -> dict[str, str]:
        # The first tile serves as referer, so that it is on the right domain.
        return {"Referer": self.tile_url(Vec2d())}


class ZoomLevelIter:
    """Walks through the successive batches of tiles of a zoom level."""

    def __init__(self, zoom_level: TileProvider) -> None:
        self.zoom_level = zoom_level
        self._previous: TileFetchResult | None = None
        self._waiting_results = False

    def next_tile_references(self) -> list[TileReference] | None:
        if self._waiting_results:
            raise RuntimeError("the result of the previous batch was not set")
        self._waiting_results = True
        tiles = self.zoom_level.next_tiles(self._previous)
        return tiles or None

    def set_fetch_result(self, result: TileFetchResult) -> None:
        if not self._waiting_results:
            raise RuntimeError("no batch of tiles is waiting for a result")
        self._waiting_results = False
        self._previous = result

    def size_hint(self) -> Vec2d | None:
        return self.zoom_level.size_hint()


class Dezoomer(ABC):
    """Recognises one zoomable image format and lists its zoom levels."""

    name: str = ""

    @abstractmethod
    def zoom_levels(self, data: DezoomerInput) -> list[TileProvider]:
        """Return the available resolutions, or raise a DezoomerError."""

    def check(self, condition: bool) -> None:
        """Raise WrongDezoomer unless the condition holds."""
        if not condition:
            raise self.wrong_dezoomer()

    def wrong_dezoomer(self) -> WrongDezoomer:
        return WrongDezoomer(self.name)


def single_level(level: TileProvider) -> list[TileProvider]:
    """Wrap a single zoom level as a list of levels."""
    return [level]