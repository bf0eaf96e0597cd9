"""A streaming PNG encoder that writes rows as soon as they are complete."""

from __future__ import annotations

import struct
import zlib
from pathlib import Path
from typing import BinaryIO

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Encoder, Tile
from tilestitch.pixel_streamer import BYTES_PER_PIXEL, PixelStreamer

_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_IDAT_SIZE = 128 * 1024
_U32_MAX = 2**32 - 1


def png_compression_level(compression: int) -> tuple[int, int]:
    """Map a 0-100 compression setting to a zlib (level, strategy) pair."""
    if compression == 0:
        return 6, zlib.Z_RLE
    if compression <= 9:
        return 6, zlib.Z_HUFFMAN_ONLY
    if compression <= 19:
        return 1, zlib.Z_DEFAULT_STRATEGY
    if compression <= 60:
        return 6, zlib.Z_DEFAULT_STRATEGY
    return 9, zlib.Z_DEFAULT_STRATEGY


def _chunk(kind: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(kind + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)


class _PngStreamWriter:
    """Accepts raw RGB pixel bytes and writes them as an 8-bit RGB PNG."""

    def __init__(self, file: BinaryIO, size: Vec2d, level: int, strategy: int) -> None:
        self._file = file
        self._row_bytes = size.x * BYTES_PER_PIXEL
        self._total = self._row_bytes * size.y
        self._written = 0
        self._compressor = zlib.compressobj(level, zlib.DEFLATED, zlib.MAX_WBITS, 8, strategy)
        self._pending = bytearray()
        header = struct.pack(">IIBBBBB", size.x, size.y, 8, 2, 0, 0, 0)
        file.write(_SIGNATURE + _chunk(b"IHDR", header))

    def _feed(self, data: bytes) -> None:
        self._pending += self._compressor.compress(data)
        while len(self._pending) >= _IDAT_SIZE:
            self._file.write(_chunk(b"IDAT", bytes(self._pending[:_IDAT_SIZE])))
            del self._pending[:_IDAT_SIZE]

    def write(self, data: bytes) -> int:
        if self._written + len(data) > self._total:
            raise ValueError("too much pixel data for the image")
        view = memoryview(data)
        while view:
            offset = self._written % self._row_bytes
            if offset == 0:
                self._feed(b"\x00")
            take = min(self._row_bytes - offset, len(view))
            self._feed(bytes(view[:take]))
            view = view[take:]
            self._written += take
        return len(data)

    def flush(self) -> None:
        self._file.flush()

    def finish(self) -> None:
        if self._written != self._total:
            raise ValueError(
                f"incomplete image: {self._written} of {self._total} bytes written"
            )
        self._pending += self._compressor.flush()
        for start in range(0, len(self._pending), _IDAT_SIZE):
            self._file.write(_chunk(b"IDAT", bytes(self._pending[start : start + _IDAT_SIZE])))
        self._pending.clear()
        self._file.write(_chunk(b"IEND", b""))
        self._file.flush()


class PngEncoder(Encoder):
    """Writes a PNG file progressively, keeping only unfinished rows in memory."""

    def __init__(self, destination: str | Path, size: Vec2d, compression: int) -> None:
        if not (0 < size.x <= _U32_MAX and 0 < size.y <= _U32_MAX):
            raise ValueError(f"invalid PNG image size: {size}")
        self._size = size
        level, strategy = png_compression_level(compression)
        self._file = open(destination, "wb")
        try:
            self._writer = _PngStreamWriter(self._file, size, level, strategy)
        except BaseException:
            self._file.close()
            raise
        self._streamer: PixelStreamer | None = PixelStreamer(self._writer, size)

    def add_tile(self, tile: Tile) -> None:
        if self._streamer is None:
            raise RuntimeError("tried to add a tile in a finalized image")
        self._streamer.add_tile(tile)

    def finalize(self) -> None:
        if self._streamer is None:
            raise RuntimeError("Tried to finalize an image twice")
        streamer, self._streamer = self._streamer, None
        try:
            streamer.finalize()
            self._writer.finish()
        finally:
            self._file.close()

    def size(self) -> Vec2d:
        return self._size