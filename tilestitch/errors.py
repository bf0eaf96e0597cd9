"""Exceptions raised while locating, downloading and assembling zoomable images."""

from __future__ import annotations


class ZoomError(Exception):
    """Base class for every error raised by the package."""


class NoLevels(ZoomError):
    """A zoomable image was found but it has no zoom level."""

    def __init__(self) -> None:
        super().__init__(
            "A zoomable image was found, but it did not contain any zoom level"
        )


class NoTile(ZoomError):
    """Not a single tile of the image could be downloaded."""

    def __init__(self) -> None:
        super().__init__("Could not get any tile for the image")


class PartialDownload(ZoomError):
    """Some tiles failed, but an image was still written."""

    def __init__(self, successful_tiles: int, total_tiles: int, destination: str) -> None:
        self.successful_tiles = successful_tiles
        self.total_tiles = total_tiles
        self.destination = destination
        super().__init__(
            f"Only {successful_tiles} tiles out of {total_tiles} could be downloaded. "
            f"The resulting image was still created in '{destination}'."
        )


class TileCopyError(ZoomError):
    """A tile could not be pasted on the canvas."""

    def __init__(
        self, x: int, y: int, twidth: int, theight: int, width: int, height: int
    ) -> None:
        self.x = x
        self.y = y
        self.twidth = twidth
        self.theight = theight
        self.width = width
        self.height = height
        super().__init__(
            f"Unable to copy a {twidth}x{theight} tile at position {x},{y} "
            f"on a canvas of size {width}x{height}"
        )


class MalformedTileStr(ZoomError):
    """A textual tile description is not of the form 'x y url'."""

    def __init__(self, tile_str: str) -> None:
        self.tile_str = tile_str
        super().__init__(f"Malformed tile string: '{tile_str}' expected 'x y url'")


class NoSuchDezoomer(ZoomError):
    """No dezoomer has the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No such dezoomer: {name}")


class DezoomerError(ZoomError):
    """A dezoomer could not produce zoom levels for its input."""


class NeedsData(DezoomerError):
    """The dezoomer has to see the contents of another URI first."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Need to download data from {uri}")


class WrongDezoomer(DezoomerError):
    """The dezoomer does not handle this kind of input."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"The '{name}' dezoomer cannot handle this URI")


class DownloadError(DezoomerError):
    """Data required by the dezoomer could not be downloaded."""

    def __init__(self, msg: str) -> None:
        self.msg = msg
        super().__init__(f"Unable to download required data: {msg}")