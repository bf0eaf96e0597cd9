"""Parsing of Google Arts & Culture artwork pages and tile descriptions."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

_U32_MAX = 2**32 - 1
_BOM = "\ufeff".encode()
_TOKEN_RE = re.compile(r']\r?\n?,"(//[^"/]+/[^"/]+)",(?:"([^"]+)"|null)')
_NAME_RE = re.compile(r'"name":"([^"]+)')
_DEFAULT_NAME = "Google Arts and culture image"


class PageParseError(ValueError):
    """An artwork page does not contain the expected information."""


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _u32_attr(element: ET.Element, name: str) -> int:
    value = element.get(name)
    if value is None or not value.isdigit() or int(value) > _U32_MAX:
        raise ValueError(f"invalid tile info: bad or missing attribute `{name}`")
    return int(value)


@dataclass(frozen=True)
class PyramidLevel:
    """One resolution of the tile pyramid."""

    num_tiles_x: int
    num_tiles_y: int
    empty_pels_x: int
    empty_pels_y: int


@dataclass(frozen=True)
class TileInfo:
    """The tile size and the resolutions of an artwork."""

    tile_width: int
    tile_height: int
    pyramid_level: tuple[PyramidLevel, ...]

    @classmethod
    def from_xml(cls, contents: bytes | str) -> "TileInfo":
        """Parse a TileInfo XML document."""
        if isinstance(contents, str):
            contents = contents.encode()
        if contents.startswith(_BOM):
            contents = contents[len(_BOM):]
        try:
            root = ET.fromstring(contents.strip())
        except ET.ParseError as err:
            raise ValueError(f"invalid tile info: {err}") from None
        levels = tuple(
            PyramidLevel(
                num_tiles_x=_u32_attr(child, "num_tiles_x"),
                num_tiles_y=_u32_attr(child, "num_tiles_y"),
                empty_pels_x=_u32_attr(child, "empty_pels_x"),
                empty_pels_y=_u32_attr(child, "empty_pels_y"),
            )
            for child in root
            if _local_name(child.tag) == "pyramid_level"
        )
        return cls(
            tile_width=_u32_attr(root, "tile_width"),
            tile_height=_u32_attr(root, "tile_height"),
            pyramid_level=levels,
        )


@dataclass(frozen=True)
class PageInfo:
    """What is needed from an artwork page to fetch its tiles."""

    base_url: str
    token: str
    name: str

    @classmethod
    def parse(cls, text: str) -> "PageInfo":
        """Extract the information from the HTML source of an artwork page."""
        match = _TOKEN_RE.search(text)
        if match is None:
            raise PageParseError("Unable to find the token in the page")
        name_match = _NAME_RE.search(text)
        return cls(
            base_url=f"https:{match.group(1)}",
            token=match.group(2) or "",
            name=name_match.group(1) if name_match else _DEFAULT_NAME,
        )

    def tile_info_url(self) -> str:
        return self.base_url + "=g"

    def path(self) -> str:
        return self.base_url.rsplit("/", 1)[-1]