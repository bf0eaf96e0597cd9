"""A dezoomer reading a ``tiles.yaml`` file that describes the tile layout."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from tilestitch.dezoomer import (
    Dezoomer,
    DezoomerInput,
    TileFetchResult,
    TileProvider,
    TileReference,
    Vec2d,
    single_level,
)
from tilestitch.errors import DezoomerError
from tilestitch.tile_set import TileSet, UrlTemplateError

logger = logging.getLogger(__name__)

_U32_MAX = 2**32 - 1
_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:84.0) Gecko/20100101 Firefox/84.0"
)


def _default_headers() -> dict[str, str]:
    return {"User-Agent": _DEFAULT_USER_AGENT}


def _optional_u32(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
        raise ValueError(f"`{key}` must be a non-negative integer, not {value!r}")
    return value


@dataclass
class CustomYamlTiles(TileProvider):
    """A zoom level described explicitly by a tiles.yaml file."""

    tile_set: TileSet
    headers: dict[str, str] = field(default_factory=_default_headers)
    image_title: str | None = None
    width: int | None = None
    height: int | None = None

    @classmethod
    def from_yaml(cls, text: str | bytes) -> "CustomYamlTiles":
        """Parse a tiles.yaml document."""
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ValueError("invalid tiles file: expected a mapping")
        headers = data.get("headers")
        if headers is None:
            headers = _default_headers()
        elif not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise ValueError("`headers` must map header names to string values")
        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise ValueError(f"`title` must be a string, not {title!r}")
        return cls(
            tile_set=TileSet.from_dict(data),
            headers=dict(headers),
            image_title=title,
            width=_optional_u32(data, "width"),
            height=_optional_u32(data, "height"),
        )

    def next_tiles(self, previous: TileFetchResult | None) -> list[TileReference]:
        if previous is not None:
            return []
        try:
            return list(self.tile_set)
        except UrlTemplateError as err:
            logger.error("Invalid tiles.yaml file: %s", err)
            return []

    def title(self) -> str | None:
        return self.image_title

    def size_hint(self) -> Vec2d | None:
        if self.width is not None and self.height is not None:
            return Vec2d(self.width, self.height)
        return None

    def http_headers(self) -> dict[str, str]:
        return dict(self.headers)

    def __repr__(self) -> str:
        return "Custom tiles"


class CustomDezoomer(Dezoomer):
    """Handles URIs ending in ``tiles.yaml``."""

    name = "custom"

    def zoom_levels(self, data: DezoomerInput) -> list[TileProvider]:
        self.check(data.uri.endswith("tiles.yaml"))
        contents = data.with_contents()
        try:
            tiles = CustomYamlTiles.from_yaml(contents)
        except (yaml.YAMLError, ValueError) as err:
            raise DezoomerError(f"Unable to create the dezoomer: {err}") from err
        return single_level(tiles)