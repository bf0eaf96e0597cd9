"""A dezoomer for Deep Zoom Images (DZI), described in XML or in JSON."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

from tilestitch.dezoomer import (
    Dezoomer,
    DezoomerInput,
    TileProvider,
    TileReference,
    TilesRect,
    Vec2d,
)
from tilestitch.errors import DezoomerError, NeedsData

logger = logging.getLogger(__name__)

_U32_MAX = 2**32 - 1
_BOM = "\ufeff".encode()
_TILE_RE = re.compile(r"_files/\d+/\d+_\d+\.(jpe?g|png)\Z")
_DIGITS_RE = re.compile(r"\d+")


class DziError(DezoomerError):
    """A DZI description is missing or invalid."""


def _to_u32(value: Any, field_name: str) -> int:
    """Accept a number or a string holding a number."""
    if isinstance(value, bool):
        raise DziError(f"invalid value for {field_name}: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        number = int(value)
    else:
        raise DziError(f"invalid value for {field_name}: {value!r}")
    if not 0 <= number <= _U32_MAX:
        raise DziError(f"value out of range for {field_name}: {number}")
    return number


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _xml_field(element: ET.Element, name: str) -> str | None:
    if name in element.attrib:
        return element.attrib[name]
    for child in element:
        if _local_name(child.tag) == name:
            return (child.text or "").strip()
    return None


@dataclass(frozen=True)
class DziFile:
    """The meta-information of a Deep Zoom Image."""

    tile_size: int
    format: str
    size: Vec2d
    overlap: int = 0
    base_url: str | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> "DziFile":
        """Build from a mapping with the DZI keys (TileSize, Format, Size...)."""
        if not isinstance(data, Mapping):
            raise DziError("expected a DZI object")
        if "TileSize" not in data:
            raise DziError("missing field `TileSize`")
        image_format = data.get("Format")
        if not isinstance(image_format, str):
            raise DziError("missing or invalid field `Format`")
        size = data.get("Size")
        if not isinstance(size, Mapping):
            raise DziError("Expected a size in the DZI file")
        base_url = data.get("Url")
        if base_url is not None and not isinstance(base_url, str):
            raise DziError(f"invalid value for Url: {base_url!r}")
        return cls(
            tile_size=_to_u32(data["TileSize"], "TileSize"),
            format=image_format,
            size=Vec2d(
                _to_u32(size.get("Width", 0), "Width"),
                _to_u32(size.get("Height", 0), "Height"),
            ),
            overlap=_to_u32(data.get("Overlap", 0), "Overlap"),
            base_url=base_url,
        )

    @classmethod
    def from_xml(cls, contents: bytes | str) -> "DziFile":
        """Parse a DZI XML document."""
        if isinstance(contents, str):
            contents = contents.encode()
        if contents.startswith(_BOM):
            contents = contents[len(_BOM):]
        try:
            root = ET.fromstring(contents.strip())
        except ET.ParseError as err:
            raise DziError(f"Unable to parse the dzi file: {err}") from None
        data: dict[str, Any] = {}
        for name in ("TileSize", "Format", "Overlap", "Url"):
            value = _xml_field(root, name)
            if value is not None:
                data[name] = value
        size_element = next(
            (child for child in root if _local_name(child.tag) == "Size"), None
        )
        if size_element is not None:
            data["Size"] = {
                name: size_element.attrib[name]
                for name in ("Width", "Height")
                if name in size_element.attrib
            }
        return cls.from_mapping(data)

    def max_level(self) -> int:
        largest = max(self.size.x, self.size.y)
        return (largest - 1).bit_length() if largest > 0 else 0

    def base_url_for(self, resource_url: str) -> str:
        """The URL under which the level directories are found."""
        if self.base_url is not None:
            return urljoin(resource_url, self.base_url.rstrip("/"))
        dot = resource_url.rfind(".")
        until_dot = resource_url[:dot] if dot >= 0 else resource_url
        return f"{until_dot}_files"


class DziLevel(TilesRect):
    """A single resolution of a Deep Zoom Image."""

    def __init__(
        self,
        base_url: str,
        size: Vec2d,
        tile_size: Vec2d,
        image_format: str,
        overlap: int,
        level: int,
    ) -> None:
        self.base_url = base_url
        self._size = size
        self._tile_size = tile_size
        self.image_format = image_format
        self.overlap = overlap
        self.level = level

    def size(self) -> Vec2d:
        return self._size

    def tile_size(self) -> Vec2d:
        return self._tile_size

    def tile_url(self, pos: Vec2d) -> str:
        return f"{self.base_url}/{self.level}/{pos.x}_{pos.y}.{self.image_format}"

    def tile_ref(self, pos: Vec2d) -> TileReference:
        delta = Vec2d(
            0 if pos.x == 0 else self.overlap,
            0 if pos.y == 0 else self.overlap,
        )
        return TileReference(
            url=self.tile_url(pos), position=self.tile_size() * pos - delta
        )

    def title(self) -> str | None:
        name = self.base_url.rsplit("/", 1)[-1]
        while name.endswith("_files"):
            name = name[: -len("_files")]
        return name

    def __repr__(self) -> str:
        return f"{self.title() or ''} (Deep Zoom Image)"


def _load_from_dzi(url: str, dzi: DziFile) -> list[TileProvider]:
    logger.debug("Found dzi meta-information: %r", dzi)
    if dzi.tile_size == 0:
        raise DziError("Invalid tile size. The tile size cannot be zero.")
    base_url = dzi.base_url_for(url)
    max_level = dzi.max_level()
    tile_size = Vec2d.square(dzi.tile_size)
    levels: list[TileProvider] = []
    size = dzi.size
    level_num = 0
    while True:
        levels.append(
            DziLevel(base_url, size, tile_size, dzi.format, dzi.overlap, max_level - level_num)
        )
        if size.x <= 1 and size.y <= 1:
            break
        size = size.ceil_div(Vec2d.square(2))
        level_num += 1
    return levels


class _ObjectParseError(Exception):
    pass


_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_SKIP_RE = re.compile(r"(?:\s+|//[^\n]*|/\*.*?\*/)*", re.S)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "0": "\0"}
_LITERALS = {"true": True, "false": False, "null": None}


class _LenientParser:
    """Parses JSON and JavaScript object literals (unquoted keys, trailing commas)."""

    def __init__(self, text: str, pos: int) -> None:
        self.text = text
        self.pos = pos

    def _peek(self) -> str:
        self.pos = _SKIP_RE.match(self.text, self.pos).end()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def parse_object(self) -> dict[str, Any]:
        if self._peek() != "{":
            raise _ObjectParseError("expected '{'")
        self.pos += 1
        result: dict[str, Any] = {}
        while True:
            if self._peek() == "}":
                self.pos += 1
                return result
            key = self._key()
            if self._peek() != ":":
                raise _ObjectParseError("expected ':'")
            self.pos += 1
            result[key] = self._value()
            following = self._peek()
            if following == ",":
                self.pos += 1
            elif following != "}":
                raise _ObjectParseError("expected ',' or '}'")

    def _array(self) -> list[Any]:
        self.pos += 1
        result: list[Any] = []
        while True:
            if self._peek() == "]":
                self.pos += 1
                return result
            result.append(self._value())
            following = self._peek()
            if following == ",":
                self.pos += 1
            elif following != "]":
                raise _ObjectParseError("expected ',' or ']'")

    def _key(self) -> str:
        char = self._peek()
        if char in ("'", '"'):
            return self._string()
        match = _IDENT_RE.match(self.text, self.pos)
        if not match:
            raise _ObjectParseError("expected a key")
        self.pos = match.end()
        return match.group()

    def _value(self) -> Any:
        char = self._peek()
        if char == "{":
            return self.parse_object()
        if char == "[":
            return self._array()
        if char in ("'", '"'):
            return self._string()
        number = _NUMBER_RE.match(self.text, self.pos)
        if number:
            self.pos = number.end()
            literal = number.group()
            if any(c in literal for c in ".eE"):
                return float(literal)
            return int(literal)
        ident = _IDENT_RE.match(self.text, self.pos)
        if ident and ident.group() in _LITERALS:
            self.pos = ident.end()
            return _LITERALS[ident.group()]
        raise _ObjectParseError("expected a value")

    def _string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            self.pos += 1
            if char == quote:
                return "".join(chars)
            if char == "\\":
                if self.pos >= len(self.text):
                    break
                escaped = self.text[self.pos]
                self.pos += 1
                if escaped == "u":
                    digits = self.text[self.pos : self.pos + 4]
                    try:
                        chars.append(chr(int(digits, 16)))
                    except ValueError:
                        raise _ObjectParseError("bad unicode escape") from None
                    self.pos += 4
                else:
                    chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)
        raise _ObjectParseError("unterminated string")


def _all_objects(text: str) -> Iterator[dict[str, Any]]:
    """Yield every object literal found in the text, nested ones included."""
    start = text.find("{")
    while start >= 0:
        try:
            yield _LenientParser(text, start).parse_object()
        except (_ObjectParseError, RecursionError):
            pass
        start = text.find("{", start + 1)


def load_from_properties(url: str, contents: bytes) -> list[TileProvider]:
    """Read the zoom levels from a DZI file, or from DZI objects embedded in a page."""
    try:
        return _load_from_dzi(url, DziFile.from_xml(contents))
    except DziError as xml_error:
        levels: list[TileProvider] = []
        for candidate in _all_objects(contents.decode("utf-8", errors="replace")):
            try:
                levels.extend(_load_from_dzi(url, DziFile.from_mapping(candidate)))
            except DziError:
                continue
        if not levels:
            raise xml_error
        return levels


class DziDezoomer(Dezoomer):
    """Handles Deep Zoom Image files and their tile URLs."""

    name = "deepzoom"

    def zoom_levels(self, data: DezoomerInput) -> list[TileProvider]:
        match = _TILE_RE.search(data.uri)
        if match:
            meta_uri = data.uri[: match.start()] + ".dzi"
            logger.debug(
                "'%s' looks like a dzi image tile URL. Trying to fetch the DZI file at '%s'.",
                data.uri,
                meta_uri,
            )
            raise NeedsData(meta_uri)
        contents = data.with_contents()
        return load_from_properties(data.uri, contents)